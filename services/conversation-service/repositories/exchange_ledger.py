"""Serialized status updates for exchanges."""

import asyncio
from collections import defaultdict

from dubbing_common.logging import setup_logging
from pydantic import ValidationError

from domain.models import AudioRef, Exchange, ExchangeError, ExchangeStatus
from exceptions import InvalidExchangeTransitionError
from repositories.conversation_repository import ConversationRepository

logger = setup_logging()


class ExchangeLedger:
    """
    Owns every write to an exchange after it has been created.

    Updates to one exchange are applied one at a time. Once an exchange is
    completed or failed it is final: later updates are logged and ignored.
    """

    def __init__(self, repository: ConversationRepository):
        self._repository = repository
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def append(self, conversation_id: str, exchange: Exchange) -> Exchange:
        """
        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If the conversation is no longer
                active.
        """
        return await asyncio.to_thread(
            self._repository.add_exchange, conversation_id, exchange
        )

    async def get(self, exchange_id: str) -> Exchange:
        return await asyncio.to_thread(self._repository.get_exchange, exchange_id)

    async def update_status(
        self,
        exchange_id: str,
        status: ExchangeStatus,
        *,
        original_ref: AudioRef | None = None,
        translated_ref: AudioRef | None = None,
        job_id: str | None = None,
        error: ExchangeError | None = None,
    ) -> Exchange:
        """
        Moves an exchange to ``status``, attaching any supplied references.

        Returns:
            The stored exchange. For an exchange that was already terminal
            this is the unchanged stored state.

        Raises:
            ExchangeNotFoundError: If the exchange no longer exists.
            InvalidExchangeTransitionError: If the update would leave the
                exchange inconsistent.
        """
        async with self._locks[exchange_id]:
            current = await asyncio.to_thread(
                self._repository.get_exchange, exchange_id
            )

            if current.status.is_terminal:
                logger.warning(
                    "Ignoring update to finished exchange",
                    extra={
                        "exchange_id": exchange_id,
                        "current_status": current.status.value,
                        "requested_status": status.value,
                    },
                )
                return current

            changes: dict = {"status": status}
            if original_ref is not None:
                changes["original_audio_ref"] = original_ref
            if translated_ref is not None:
                changes["translated_audio_ref"] = translated_ref
            if job_id is not None:
                changes["job_id"] = job_id
            if error is not None:
                changes["error"] = error

            try:
                updated = Exchange.model_validate({**dict(current), **changes})
            except ValidationError as e:
                raise InvalidExchangeTransitionError(exchange_id, str(e)) from e

            stored = await asyncio.to_thread(self._repository.save_exchange, updated)

        if stored.status.is_terminal:
            self._locks.pop(exchange_id, None)

        logger.info(
            "Exchange updated",
            extra={"exchange_id": exchange_id, "status": stored.status.value},
        )
        return stored
