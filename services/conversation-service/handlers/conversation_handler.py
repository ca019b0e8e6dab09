"""Handler for conversation lifecycle and recording submission."""

import asyncio

from dubbing_common.logging import setup_logging

from domain import (
    Conversation,
    ConversationPlayback,
    ConversationStatus,
    ConversationSummary,
    Exchange,
    ExchangeStatus,
    Language,
    PatientInfo,
    PlaybackExchange,
    PlaybackTrack,
    Recording,
)
from domain.lifecycle import (
    ensure_accepts_recordings,
    ensure_can_archive,
    ensure_can_complete,
)
from domain.models import utcnow
from infrastructure.interfaces import DubbingProvider
from pipeline import DubbingPipeline, DurableStore
from repositories import ConversationRepository, ExchangeLedger

logger = setup_logging()


class ConversationHandler:
    """
    Entry point for everything a client can do with a conversation.

    Keeps lifecycle rules in one place so the HTTP layer only maps
    exceptions to status codes.
    """

    def __init__(
        self,
        repository: ConversationRepository,
        ledger: ExchangeLedger,
        pipeline: DubbingPipeline,
        durable_store: DurableStore,
        provider: DubbingProvider,
    ):
        self._repository = repository
        self._ledger = ledger
        self._pipeline = pipeline
        self._durable_store = durable_store
        self._provider = provider

    def start_new_conversation(
        self, patient_info: PatientInfo, owner_id: str
    ) -> Conversation:
        """
        Creates an active conversation after dropping the owner's empty ones.

        Returns:
            The new conversation with no exchanges.
        """
        removed = self._repository.delete_empty_active(owner_id)
        if removed:
            logger.info(
                "Removed empty conversations",
                extra={"owner_id": owner_id, "conversation_ids": removed},
            )
        return self._repository.create(owner_id, patient_info)

    async def submit_recording(
        self,
        conversation_id: str,
        recording: Recording,
        target_language: str,
        source_language: str | None = None,
    ) -> Exchange:
        """
        Starts dubbing a recording as a new exchange of the conversation.

        Returns:
            The exchange in ``processing`` state; dubbing continues in the
            background.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If the conversation is not active.
            InvalidRecordingError: If the recording is empty or has no target
                language.
        """
        conversation = await asyncio.to_thread(self._repository.get, conversation_id)
        ensure_accepts_recordings(conversation)
        return await self._pipeline.start(
            conversation_id, recording, target_language, source_language
        )

    async def add_exchange(self, conversation_id: str, exchange: Exchange) -> Exchange:
        """
        Stores an exchange produced outside the pipeline.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If the conversation is not active.
        """
        conversation = await asyncio.to_thread(self._repository.get, conversation_id)
        ensure_accepts_recordings(conversation)
        return await self._ledger.append(conversation_id, exchange)

    def get_conversation(self, conversation_id: str) -> Conversation:
        return self._repository.get(conversation_id)

    def list_conversations(
        self, owner_id: str, include_archived: bool = True
    ) -> list[ConversationSummary]:
        return self._repository.list_by_owner(owner_id, include_archived)

    def complete_conversation(self, conversation_id: str) -> Conversation:
        """
        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If it is not active or has no
                exchanges.
        """
        conversation = self._repository.get(conversation_id)
        ensure_can_complete(conversation)
        return self._repository.update_status(
            conversation_id, ConversationStatus.COMPLETED, end_time=utcnow()
        )

    def archive_conversation(self, conversation_id: str) -> Conversation:
        """
        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If it is not completed.
        """
        conversation = self._repository.get(conversation_id)
        ensure_can_archive(conversation)
        return self._repository.update_status(
            conversation_id, ConversationStatus.ARCHIVED
        )

    def delete_conversation(self, conversation_id: str) -> None:
        self._repository.delete(conversation_id)

    def get_playback(self, conversation_id: str) -> ConversationPlayback:
        """
        Resolves the audio of every exchange to playable URLs.

        Audio that can no longer be resolved is flagged on its exchange
        rather than failing the whole view.
        """
        conversation = self._repository.get(conversation_id)

        exchanges = []
        unavailable = 0
        for exchange in conversation.exchanges:
            original_url = self._durable_store.resolve(exchange.original_audio_ref)
            translated_url = self._durable_store.resolve(exchange.translated_audio_ref)

            available = original_url is not None and (
                exchange.status is not ExchangeStatus.COMPLETED
                or translated_url is not None
            )
            if not available:
                unavailable += 1

            exchanges.append(
                PlaybackExchange(
                    exchange_id=exchange.id,
                    source_language=exchange.source_language,
                    target_language=exchange.target_language,
                    status=exchange.status,
                    created_at=exchange.created_at,
                    original_url=original_url,
                    translated_url=translated_url,
                    audio_available=available,
                    error=exchange.error,
                )
            )

        if unavailable:
            logger.warning(
                "Some exchange audio is no longer available",
                extra={"conversation_id": conversation_id, "count": unavailable},
            )

        return ConversationPlayback(
            conversation_id=conversation.id,
            status=conversation.status,
            exchanges=exchanges,
            unavailable_count=unavailable,
        )

    def language_playlist(
        self, conversation_id: str, language: str
    ) -> list[PlaybackTrack]:
        """
        Builds the ordered tracks heard in one language.

        Exchanges spoken in ``language`` contribute their original audio;
        exchanges dubbed into it contribute their translation.
        """
        conversation = self._repository.get(conversation_id)

        tracks = []
        for exchange in conversation.exchanges:
            if exchange.source_language == language:
                url = self._durable_store.resolve(exchange.original_audio_ref)
                is_original = True
            elif (
                exchange.target_language == language
                and exchange.status is ExchangeStatus.COMPLETED
            ):
                url = self._durable_store.resolve(exchange.translated_audio_ref)
                is_original = False
            else:
                continue

            if url is None:
                continue
            tracks.append(
                PlaybackTrack(
                    exchange_id=exchange.id,
                    language=language,
                    url=url,
                    is_original=is_original,
                    created_at=exchange.created_at,
                )
            )
        return tracks

    async def list_languages(self) -> list[Language]:
        return await self._provider.list_languages()
