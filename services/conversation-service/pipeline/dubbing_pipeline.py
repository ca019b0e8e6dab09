"""Runs recordings through submission, polling, fetch and persistence."""

import asyncio
import uuid

from dubbing_common.logging import setup_logging

from domain.models import (
    Exchange,
    ExchangeError,
    ExchangeStatus,
    FailureKind,
    Recording,
)
from exceptions import DubbingFailure, ExchangeNotFoundError, UploadError
from infrastructure.ephemeral_audio import EphemeralAudioCache
from pipeline.durable_store import DurableStore
from pipeline.fetcher import ArtifactFetcher
from pipeline.poller import JobPoller
from pipeline.submitter import JobSubmitter
from repositories import ExchangeLedger

logger = setup_logging()


class DubbingPipeline:
    """
    Turns one recording into one exchange and drives it to a terminal state.

    ``start`` records the exchange as processing and returns at once; the
    rest of the work runs as a background task, so several recordings can be
    in flight at the same time without blocking new ones.
    """

    def __init__(
        self,
        submitter: JobSubmitter,
        poller: JobPoller,
        fetcher: ArtifactFetcher,
        durable_store: DurableStore,
        ledger: ExchangeLedger,
        ephemeral_audio: EphemeralAudioCache,
    ):
        self._submitter = submitter
        self._poller = poller
        self._fetcher = fetcher
        self._durable_store = durable_store
        self._ledger = ledger
        self._ephemeral_audio = ephemeral_audio
        self._tasks: dict[str, asyncio.Task] = {}

    async def start(
        self,
        conversation_id: str,
        recording: Recording,
        target_language: str,
        source_language: str | None = None,
    ) -> Exchange:
        """
        Records a new processing exchange and schedules its dubbing.

        Returns:
            The exchange as stored, in ``processing`` state.

        Raises:
            InvalidRecordingError: If the recording is empty or has no target
                language. No exchange is created in that case.
            ConversationNotFoundError: If the conversation does not exist.
        """
        self._submitter.validate(recording, target_language)

        original_ref = self._ephemeral_audio.put(
            recording.data, recording.content_type
        )
        exchange = Exchange(
            id=uuid.uuid4().hex,
            source_language=source_language,
            target_language=target_language,
            original_audio_ref=original_ref,
            created_at=recording.started_at,
            duration_seconds=recording.duration_seconds,
        )

        try:
            exchange = await self._ledger.append(conversation_id, exchange)
        except Exception:
            self._ephemeral_audio.discard(original_ref.value)
            raise

        task = asyncio.create_task(self.run(conversation_id, exchange, recording))
        self._tasks[exchange.id] = task
        task.add_done_callback(lambda _: self._tasks.pop(exchange.id, None))

        logger.info(
            "Exchange started",
            extra={
                "conversation_id": conversation_id,
                "exchange_id": exchange.id,
                "language_pair": exchange.language_pair,
            },
        )
        return exchange

    async def process(
        self,
        conversation_id: str,
        recording: Recording,
        target_language: str,
        source_language: str | None = None,
    ) -> Exchange:
        """Starts an exchange and waits for it to reach a terminal state."""
        exchange = await self.start(
            conversation_id, recording, target_language, source_language
        )
        return await self.wait(exchange.id) or exchange

    async def wait(self, exchange_id: str) -> Exchange | None:
        """
        Waits for an exchange to finish dubbing.

        Returns:
            The final exchange, or None if it was deleted while in flight.
            An exchange that is not in flight is returned as stored.

        Raises:
            ExchangeNotFoundError: If the exchange is neither in flight nor
                stored.
        """
        task = self._tasks.get(exchange_id)
        if task is None:
            return await self._ledger.get(exchange_id)
        return await task

    def in_flight(self) -> list[str]:
        return list(self._tasks)

    async def shutdown(self) -> None:
        """Cancels every in-flight exchange task."""
        tasks = list(self._tasks.values())
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info("Cancelled in-flight exchanges", extra={"count": len(tasks)})

    async def run(
        self, conversation_id: str, exchange: Exchange, recording: Recording
    ) -> Exchange | None:
        """
        Drives an already-recorded exchange to completed or failed.

        Every failure is recorded on the exchange; nothing is raised to the
        caller. Returns None if the exchange was deleted meanwhile.
        """
        stage = "submission"
        try:
            job = await self._submitter.submit(
                recording, exchange.target_language, exchange.source_language
            )
            await self._ledger.update_status(
                exchange.id, ExchangeStatus.PROCESSING, job_id=job.job_id
            )

            stage = "polling"
            job = await self._poller.poll(job)

            stage = "fetch"
            translated = await self._fetcher.fetch(job)

            stage = "persistence"
            return await self._complete(conversation_id, exchange, translated)

        except DubbingFailure as e:
            logger.warning(
                "Exchange failed",
                extra={
                    "conversation_id": conversation_id,
                    "exchange_id": exchange.id,
                    "stage": stage,
                    "error_type": type(e).__name__,
                    "error": str(e),
                },
            )
            return await self._fail(exchange.id, FailureKind(e.kind), str(e))

        except ExchangeNotFoundError:
            logger.info(
                "Exchange removed before dubbing finished",
                extra={"conversation_id": conversation_id, "exchange_id": exchange.id},
            )
            return None

        except Exception as e:
            logger.exception(
                "Unexpected error while dubbing exchange",
                extra={
                    "conversation_id": conversation_id,
                    "exchange_id": exchange.id,
                    "stage": stage,
                },
            )
            return await self._fail(exchange.id, FailureKind.INTERNAL, str(e))

    async def _complete(
        self, conversation_id: str, exchange: Exchange, translated: bytes
    ) -> Exchange:
        original_ref = exchange.original_audio_ref
        translated_ref = self._ephemeral_audio.put(translated, "audio/mpeg")
        handles = [
            ref.value for ref in (original_ref, translated_ref) if ref.is_ephemeral
        ]

        try:
            durable = await self._durable_store.upload(
                conversation_id,
                exchange.id,
                original_ref,
                translated_ref,
                exchange.source_language,
                exchange.target_language,
            )
            original_ref, translated_ref = durable.original, durable.translated
        except UploadError as e:
            logger.warning(
                "Keeping ephemeral audio for exchange",
                extra={
                    "conversation_id": conversation_id,
                    "exchange_id": exchange.id,
                    "error_type": type(e).__name__,
                    "error": str(e.cause or e),
                },
            )

        stored = await self._ledger.update_status(
            exchange.id,
            ExchangeStatus.COMPLETED,
            original_ref=original_ref,
            translated_ref=translated_ref,
        )

        if (stored.original_audio_ref, stored.translated_audio_ref) == (
            original_ref,
            translated_ref,
        ) and not translated_ref.is_ephemeral:
            for handle in handles:
                self._ephemeral_audio.discard(handle)
        return stored

    async def _fail(
        self, exchange_id: str, kind: FailureKind, message: str
    ) -> Exchange | None:
        try:
            return await self._ledger.update_status(
                exchange_id,
                ExchangeStatus.FAILED,
                error=ExchangeError(kind=kind, message=message),
            )
        except ExchangeNotFoundError:
            return None
