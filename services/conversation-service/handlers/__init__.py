from handlers.conversation_handler import ConversationHandler

__all__ = ["ConversationHandler"]
