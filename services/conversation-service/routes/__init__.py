from routes.audio import router as audio_router
from routes.conversations import languages_router
from routes.conversations import router as conversations_router

__all__ = ["audio_router", "conversations_router", "languages_router"]
