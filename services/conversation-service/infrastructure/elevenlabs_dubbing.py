"""ElevenLabs implementation of the DubbingProvider interface."""

from datetime import datetime
from typing import Any

import httpx
from dubbing_common.logging import setup_logging

from domain.models import DUBBING_LANGUAGES, DubbingJob, JobStatus, Language, utcnow
from exceptions import FetchError, PollTransportError, SubmissionError

from .interfaces import DubbingProvider

logger = setup_logging()

_FILE_EXTENSIONS = {
    "audio/webm": "webm",
    "audio/ogg": "ogg",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mpeg": "mp3",
    "audio/mp4": "m4a",
}

# ElevenLabs reports in-flight jobs as "dubbing"
_STATUS_MAP = {
    "pending": JobStatus.PENDING,
    "processing": JobStatus.PROCESSING,
    "dubbing": JobStatus.PROCESSING,
    "dubbed": JobStatus.DUBBED,
    "failed": JobStatus.FAILED,
}


class ElevenLabsDubbingProvider(DubbingProvider):
    """Handles dubbing jobs through the ElevenLabs REST API."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        allow_watermark: bool = True,
    ):
        self._client = client
        self._api_key = api_key
        self._allow_watermark = allow_watermark

    @property
    def _headers(self) -> dict[str, str]:
        return {"xi-api-key": self._api_key}

    async def submit(
        self,
        audio: bytes,
        content_type: str,
        target_language: str,
        source_language: str | None = None,
    ) -> DubbingJob:
        extension = _FILE_EXTENSIONS.get(content_type.split(";")[0], "webm")
        data = {
            "target_lang": target_language,
            "source_lang": source_language or "auto",
        }
        if self._allow_watermark:
            data["allow_watermark"] = "true"

        try:
            response = await self._client.post(
                "/dubbing",
                headers=self._headers,
                data=data,
                files={"file": (f"recording.{extension}", audio, content_type)},
            )
            response.raise_for_status()
            job = self._to_job(
                response.json(), target_language, default_status="pending"
            )
        except httpx.HTTPStatusError as e:
            logger.exception(
                "ElevenLabs rejected dubbing job",
                extra={
                    "status_code": e.response.status_code,
                    "target_language": target_language,
                },
            )
            raise SubmissionError(
                f"provider returned {e.response.status_code}: {e.response.text}", e
            ) from e
        except (httpx.HTTPError, ValueError, KeyError) as e:
            logger.exception(
                "ElevenLabs dubbing submission failed",
                extra={"target_language": target_language},
            )
            raise SubmissionError(str(e) or type(e).__name__, e) from e

        logger.info(
            "Dubbing job submitted",
            extra={"job_id": job.job_id, "target_language": target_language},
        )
        return job

    async def get_status(self, job_id: str) -> DubbingJob:
        try:
            response = await self._client.get(
                f"/dubbing/{job_id}", headers=self._headers
            )
            response.raise_for_status()
            payload = response.json()
            target_languages = payload.get("target_languages") or [""]
            return self._to_job(
                payload,
                payload.get("target_lang") or target_languages[0],
                default_status="processing",
            )
        except (httpx.HTTPError, ValueError, KeyError) as e:
            raise PollTransportError(job_id, e) from e

    async def fetch_audio(self, job_id: str, target_language: str) -> bytes:
        try:
            response = await self._client.get(
                f"/dubbing/{job_id}/audio/{target_language}", headers=self._headers
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.exception(
                "ElevenLabs audio download failed",
                extra={"job_id": job_id, "target_language": target_language},
            )
            raise FetchError(job_id, target_language, e) from e

        logger.info(
            "Dubbed audio downloaded",
            extra={"job_id": job_id, "size": len(response.content)},
        )
        return response.content

    async def list_languages(self) -> list[Language]:
        return list(DUBBING_LANGUAGES)

    def _to_job(
        self, payload: dict[str, Any], target_language: str, default_status: str
    ) -> DubbingJob:
        raw_status = str(payload.get("status") or default_status).lower()
        status = _STATUS_MAP.get(raw_status)
        if status is None:
            logger.warning(
                "Unknown ElevenLabs job status, treating as processing",
                extra={"job_id": payload.get("dubbing_id"), "status": raw_status},
            )
            status = JobStatus.PROCESSING

        return DubbingJob(
            job_id=payload["dubbing_id"],
            status=status,
            target_language=target_language,
            created_at=_parse_timestamp(payload.get("created_at")),
            error=payload.get("error"),
        )


def _parse_timestamp(value: Any) -> datetime:
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            pass
    return utcnow()
