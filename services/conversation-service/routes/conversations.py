"""Conversation-related API endpoints."""

from datetime import datetime
from typing import Annotated, List

from dubbing_common.logging import setup_logging
from fastapi import APIRouter, Depends, Form, HTTPException, Response, UploadFile

from dependencies import get_handler
from domain import (
    AudioCapture,
    Conversation,
    ConversationPlayback,
    ConversationSummary,
    Language,
    PlaybackTrack,
)
from exceptions import (
    ConversationNotFoundError,
    InvalidConversationStateError,
    InvalidRecordingError,
)
from handlers import ConversationHandler
from response_models import ExchangeResponse, StartConversationRequest

logger = setup_logging()

router = APIRouter(prefix="/conversations", tags=["conversations"])
languages_router = APIRouter(prefix="/languages", tags=["languages"])

HandlerDep = Annotated[ConversationHandler, Depends(get_handler)]

_CHUNK_SIZE = 64 * 1024


@router.post("", response_model=Conversation, status_code=201)
def start_conversation(body: StartConversationRequest, handler: HandlerDep):
    """Starts a new active conversation for the owner."""
    try:
        return handler.start_new_conversation(body.patient_info, body.owner_id)
    except Exception as e:
        logger.error(f"Error starting conversation for {body.owner_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("", response_model=List[ConversationSummary])
def list_conversations(
    owner_id: str, handler: HandlerDep, include_archived: bool = True
):
    """Returns the owner's conversation history, most recent first."""
    try:
        return handler.list_conversations(owner_id, include_archived)
    except Exception as e:
        logger.error(f"Error listing conversations for {owner_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{conversation_id}", response_model=Conversation)
def get_conversation(conversation_id: str, handler: HandlerDep):
    try:
        return handler.get_conversation(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception as e:
        logger.error(f"Error getting conversation {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get("/{conversation_id}/playback", response_model=ConversationPlayback)
def get_playback(conversation_id: str, handler: HandlerDep):
    """Returns every exchange with its audio resolved to playable URLs."""
    try:
        return handler.get_playback(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception as e:
        logger.error(f"Error building playback for {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.get(
    "/{conversation_id}/playlist/{language}", response_model=List[PlaybackTrack]
)
def get_language_playlist(conversation_id: str, language: str, handler: HandlerDep):
    try:
        return handler.language_playlist(conversation_id, language)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception as e:
        logger.error(f"Error building {language} playlist for {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post(
    "/{conversation_id}/recordings",
    response_model=ExchangeResponse,
    status_code=202,
)
async def submit_recording(
    conversation_id: str,
    audio: UploadFile,
    handler: HandlerDep,
    target_language: str = Form(...),
    source_language: str | None = Form(None),
    started_at: datetime | None = Form(None),
    duration_seconds: float | None = Form(None, ge=0),
):
    """
    Accepts one recorded take and starts dubbing it.

    Responds as soon as the exchange is recorded as processing; poll the
    conversation to follow it to completed or failed.
    """
    capture = AudioCapture(content_type=audio.content_type or "audio/webm")
    capture.start(started_at)
    while chunk := await audio.read(_CHUNK_SIZE):
        capture.add_chunk(chunk)

    try:
        recording = capture.finish(duration_seconds)
        exchange = await handler.submit_recording(
            conversation_id, recording, target_language, source_language or None
        )
    except InvalidRecordingError as e:
        raise HTTPException(status_code=422, detail=e.reason)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except InvalidConversationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Error submitting recording to {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")

    return ExchangeResponse(**exchange.model_dump())


@router.post("/{conversation_id}/complete", response_model=Conversation)
def complete_conversation(conversation_id: str, handler: HandlerDep):
    try:
        return handler.complete_conversation(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except InvalidConversationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Error completing conversation {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/{conversation_id}/archive", response_model=Conversation)
def archive_conversation(conversation_id: str, handler: HandlerDep):
    try:
        return handler.archive_conversation(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except InvalidConversationStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error(f"Error archiving conversation {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.delete("/{conversation_id}", status_code=204)
def delete_conversation(conversation_id: str, handler: HandlerDep):
    try:
        handler.delete_conversation(conversation_id)
    except ConversationNotFoundError:
        raise HTTPException(status_code=404, detail="Conversation not found")
    except Exception as e:
        logger.error(f"Error deleting conversation {conversation_id}: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
    return Response(status_code=204)


@languages_router.get("", response_model=List[Language])
async def list_languages(handler: HandlerDep):
    """Returns the languages the dubbing provider can target."""
    try:
        return await handler.list_languages()
    except Exception as e:
        logger.error(f"Error listing languages: {e}")
        raise HTTPException(status_code=500, detail="Internal server error")
