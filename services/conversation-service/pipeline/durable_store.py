"""Reconciles ephemeral exchange audio with durable blob storage."""

import asyncio
import io
import time
from datetime import timedelta
from functools import partial

from dubbing_common import StorageDeleteError, StorageUploadError
from dubbing_common.infrastructure import StorageClient
from dubbing_common.logging import setup_logging

from domain.models import AudioRef, AudioRefKind, DurableAudioRefs
from exceptions import UploadError
from infrastructure.ephemeral_audio import EphemeralAudioCache

logger = setup_logging()

AudioSource = bytes | AudioRef

_EXTENSIONS = {
    "audio/mpeg": "mp3",
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/mp4": "m4a",
}


class DurableStore:
    """
    Moves exchange audio into durable storage and resolves references.

    Uploading is best-effort: every failure surfaces as UploadError so the
    caller can keep its ephemeral references and carry on. A failed upload
    leaves nothing behind in storage.
    """

    def __init__(
        self,
        storage: StorageClient,
        ephemeral_audio: EphemeralAudioCache,
        prefix: str = "voice-translations",
        url_ttl: timedelta = timedelta(hours=1),
        upload_timeout_seconds: float = 30.0,
        ephemeral_base_url: str = "/audio/ephemeral",
    ):
        self._storage = storage
        self._ephemeral_audio = ephemeral_audio
        self._prefix = prefix.strip("/")
        self._url_ttl = url_ttl
        self._upload_timeout_seconds = upload_timeout_seconds
        self._ephemeral_base_url = ephemeral_base_url.rstrip("/")

    @staticmethod
    def is_ephemeral(ref: AudioRef) -> bool:
        return ref.kind is AudioRefKind.EPHEMERAL

    async def upload(
        self,
        conversation_id: str,
        exchange_id: str,
        original: AudioSource,
        translated: AudioSource,
        source_language: str | None,
        target_language: str,
    ) -> DurableAudioRefs:
        """
        Uploads the original and translated audio of one exchange.

        Each side may be raw bytes or an existing reference; durable
        references are kept as they are.

        Returns:
            Durable references for both sides.

        Raises:
            UploadError: If either side cannot be read or written, or the
                uploads exceed the upload timeout.
        """
        written: list[str] = []
        try:
            async with asyncio.timeout(self._upload_timeout_seconds):
                original_ref = await self._persist(
                    conversation_id,
                    exchange_id,
                    "original",
                    source_language or "auto",
                    original,
                    written,
                    default_content_type="audio/webm",
                )
                translated_ref = await self._persist(
                    conversation_id,
                    exchange_id,
                    "translated",
                    target_language,
                    translated,
                    written,
                    default_content_type="audio/mpeg",
                )
        except (StorageUploadError, LookupError, TimeoutError) as e:
            for object_name in written:
                await asyncio.to_thread(self._remove_object, object_name)
            raise UploadError(exchange_id, e) from e

        logger.info(
            "Exchange audio persisted",
            extra={
                "conversation_id": conversation_id,
                "exchange_id": exchange_id,
                "original": original_ref.value,
                "translated": translated_ref.value,
            },
        )
        return DurableAudioRefs(original=original_ref, translated=translated_ref)

    def resolve(self, ref: AudioRef | None) -> str | None:
        """
        Returns a playable URL for a reference, or None when it cannot be
        played any more (an expired ephemeral handle or a storage error).
        """
        if ref is None:
            return None

        if ref.is_ephemeral:
            if not self._ephemeral_audio.contains(ref.value):
                return None
            return f"{self._ephemeral_base_url}/{ref.value}"

        try:
            return self._storage.presigned_url(ref.value, self._url_ttl)
        except Exception as e:
            logger.warning(
                "Could not resolve durable audio",
                extra={"object_name": ref.value, "error": str(e)},
            )
            return None

    async def _persist(
        self,
        conversation_id: str,
        exchange_id: str,
        role: str,
        language: str,
        source: AudioSource,
        written: list[str],
        default_content_type: str,
    ) -> AudioRef:
        if isinstance(source, AudioRef):
            if not source.is_ephemeral:
                return source
            entry = self._ephemeral_audio.get(source.value)
            if entry is None:
                raise LookupError(f"ephemeral audio {source.value} has expired")
            data, content_type = entry.data, entry.content_type
        else:
            data, content_type = source, default_content_type

        object_name = self._object_name(
            conversation_id, exchange_id, role, language, content_type
        )
        upload = asyncio.ensure_future(
            asyncio.to_thread(
                self._storage.upload,
                object_name,
                io.BytesIO(data),
                len(data),
                content_type,
            )
        )
        try:
            await asyncio.shield(upload)
        except asyncio.CancelledError:
            # the worker thread cannot be interrupted; undo its write once it lands
            upload.add_done_callback(partial(self._remove_late_upload, object_name))
            raise
        written.append(object_name)
        return AudioRef.durable(object_name)

    def _remove_late_upload(self, object_name: str, upload: asyncio.Future) -> None:
        if upload.cancelled() or upload.exception() is not None:
            return
        asyncio.get_running_loop().run_in_executor(
            None, self._remove_object, object_name
        )

    def _remove_object(self, object_name: str) -> None:
        try:
            self._storage.delete(object_name)
        except StorageDeleteError as e:
            logger.warning(
                "Could not remove partially uploaded audio",
                extra={"object_name": object_name, "error": str(e.cause or e)},
            )

    def _object_name(
        self,
        conversation_id: str,
        exchange_id: str,
        role: str,
        language: str,
        content_type: str,
    ) -> str:
        extension = _EXTENSIONS.get(content_type.split(";")[0], "bin")
        timestamp = time.time_ns() // 1_000_000
        return (
            f"{self._prefix}/{conversation_id}/{exchange_id}/"
            f"{role}-{language}-{timestamp}.{extension}"
        )
