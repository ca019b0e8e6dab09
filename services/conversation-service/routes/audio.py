"""Serves audio that only lives in this process."""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Response

from dependencies import get_ephemeral_audio
from infrastructure import EphemeralAudioCache

router = APIRouter(prefix="/audio", tags=["audio"])

EphemeralAudioDep = Annotated[EphemeralAudioCache, Depends(get_ephemeral_audio)]


@router.get("/ephemeral/{handle}")
def get_ephemeral_audio_file(handle: str, cache: EphemeralAudioDep):
    """Returns audio that has not reached durable storage yet."""
    entry = cache.get(handle)
    if entry is None:
        raise HTTPException(status_code=404, detail="Audio no longer available")
    return Response(content=entry.data, media_type=entry.content_type)
