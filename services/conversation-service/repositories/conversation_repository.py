"""Repository for conversation and exchange persistence."""

import uuid
from datetime import datetime, timezone
from typing import Callable, ContextManager

from dubbing_common.db_models import ConversationRecord, ExchangeRecord
from dubbing_common.logging import setup_logging
from sqlmodel import Session, col, select

from domain.models import (
    AudioRef,
    Conversation,
    ConversationStatus,
    ConversationSummary,
    Exchange,
    ExchangeError,
    PatientInfo,
    utcnow,
)
from domain.session_info import SessionInfoBuilder
from exceptions import (
    ConversationNotFoundError,
    ExchangeNotFoundError,
    InvalidConversationStateError,
)

logger = setup_logging()

SessionFactory = Callable[[], ContextManager[Session]]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class ConversationRepository:
    """
    Handles database operations for conversations and their exchanges.

    Every mutation that touches exchanges recomputes the stored session info
    in the same transaction, so the persisted exchange count always matches
    the persisted exchanges.
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        session_info_builder: SessionInfoBuilder | None = None,
    ):
        """
        Initializes the repository.

        Args:
            session_factory: Callable that returns a SQLModel Session context manager.
            session_info_builder: Derives session statistics from exchanges.
        """
        self._session_factory = session_factory
        self._session_info = session_info_builder or SessionInfoBuilder()

    def create(self, owner_id: str, patient_info: PatientInfo) -> Conversation:
        now = utcnow()
        record = ConversationRecord(
            id=uuid.uuid4().hex,
            owner_id=owner_id,
            status=ConversationStatus.ACTIVE.value,
            patient_info=patient_info.model_dump(mode="json", exclude_none=True),
            start_time=now,
            created_at=now,
            updated_at=now,
        )
        with self._session_factory() as db:
            db.add(record)
            db.commit()
            db.refresh(record)
            logger.info(
                "Conversation created",
                extra={"conversation_id": record.id, "owner_id": owner_id},
            )
            return self._to_conversation(record, [])

    def get(self, conversation_id: str) -> Conversation:
        """
        Raises:
            ConversationNotFoundError: If the conversation does not exist.
        """
        with self._session_factory() as db:
            record = self._get_record(db, conversation_id)
            return self._to_conversation(record, self._exchange_records(db, record.id))

    def list_by_owner(
        self, owner_id: str, include_archived: bool = True
    ) -> list[ConversationSummary]:
        """Returns the owner's conversations, most recent first."""
        statement = select(ConversationRecord).where(
            ConversationRecord.owner_id == owner_id
        )
        if not include_archived:
            statement = statement.where(
                ConversationRecord.status != ConversationStatus.ARCHIVED.value
            )
        statement = statement.order_by(col(ConversationRecord.created_at).desc())

        with self._session_factory() as db:
            return [self._to_summary(r) for r in db.exec(statement).all()]

    def update_status(
        self,
        conversation_id: str,
        status: ConversationStatus,
        end_time: datetime | None = None,
    ) -> Conversation:
        """
        Raises:
            ConversationNotFoundError: If the conversation does not exist.
        """
        with self._session_factory() as db:
            record = self._get_record(db, conversation_id, for_update=True)
            record.status = status.value
            if end_time is not None:
                record.end_time = end_time
            exchanges = self._exchange_records(db, record.id)
            self._refresh_session_info(record, exchanges)
            db.add(record)
            db.commit()
            db.refresh(record)
            logger.info(
                "Conversation status changed",
                extra={"conversation_id": conversation_id, "status": status.value},
            )
            return self._to_conversation(record, exchanges)

    def delete(self, conversation_id: str) -> None:
        """
        Removes a conversation and all of its exchanges.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
        """
        with self._session_factory() as db:
            record = self._get_record(db, conversation_id)
            exchanges = self._exchange_records(db, record.id)
            for exchange in exchanges:
                db.delete(exchange)
            db.delete(record)
            db.commit()
            logger.info(
                "Conversation deleted",
                extra={
                    "conversation_id": conversation_id,
                    "exchange_count": len(exchanges),
                },
            )

    def delete_empty_active(self, owner_id: str) -> list[str]:
        """Deletes the owner's active conversations that have no exchanges."""
        statement = select(ConversationRecord).where(
            ConversationRecord.owner_id == owner_id,
            ConversationRecord.status == ConversationStatus.ACTIVE.value,
            ConversationRecord.exchange_count == 0,
        )
        with self._session_factory() as db:
            removed = []
            for record in db.exec(statement).all():
                if self._exchange_records(db, record.id):
                    continue
                removed.append(record.id)
                db.delete(record)
            db.commit()
            return removed

    def add_exchange(self, conversation_id: str, exchange: Exchange) -> Exchange:
        """
        Stores a new exchange at its recording position.

        Raises:
            ConversationNotFoundError: If the conversation does not exist.
            InvalidConversationStateError: If the conversation is no longer
                active.
        """
        with self._session_factory() as db:
            conversation = self._get_record(db, conversation_id, for_update=True)
            if conversation.status != ConversationStatus.ACTIVE.value:
                raise InvalidConversationStateError(
                    conversation_id, conversation.status, "record into"
                )
            now = utcnow()

            stored = exchange.model_copy(update={"sequence": conversation.next_sequence})
            db.add(self._to_exchange_record(conversation_id, stored, now))
            conversation.next_sequence += 1
            db.flush()

            self._refresh_session_info(
                conversation, self._exchange_records(db, conversation_id)
            )
            db.add(conversation)
            db.commit()
            logger.info(
                "Exchange added",
                extra={
                    "conversation_id": conversation_id,
                    "exchange_id": stored.id,
                    "sequence": stored.sequence,
                },
            )
            return stored

    def get_exchange(self, exchange_id: str) -> Exchange:
        """
        Raises:
            ExchangeNotFoundError: If the exchange does not exist.
        """
        with self._session_factory() as db:
            record = db.get(ExchangeRecord, exchange_id)
            if record is None:
                raise ExchangeNotFoundError(exchange_id)
            return self._to_exchange(record)

    def save_exchange(self, exchange: Exchange) -> Exchange:
        """
        Overwrites the stored state of an existing exchange.

        Raises:
            ExchangeNotFoundError: If the exchange no longer exists.
        """
        with self._session_factory() as db:
            record = db.get(ExchangeRecord, exchange.id)
            if record is None:
                raise ExchangeNotFoundError(exchange.id)

            updated = self._to_exchange_record(
                record.conversation_id, exchange, utcnow()
            )
            for field in (
                "status",
                "original_audio_kind",
                "original_audio_value",
                "translated_audio_kind",
                "translated_audio_value",
                "job_id",
                "error_kind",
                "error_message",
                "updated_at",
            ):
                setattr(record, field, getattr(updated, field))
            db.add(record)
            db.flush()

            conversation = db.get(ConversationRecord, record.conversation_id)
            self._refresh_session_info(
                conversation, self._exchange_records(db, conversation.id)
            )
            db.add(conversation)
            db.commit()
            db.refresh(record)
            return self._to_exchange(record)

    def _get_record(
        self, db: Session, conversation_id: str, for_update: bool = False
    ) -> ConversationRecord:
        record = db.get(
            ConversationRecord, conversation_id, with_for_update=for_update
        )
        if record is None:
            raise ConversationNotFoundError(conversation_id)
        return record

    def _exchange_records(
        self, db: Session, conversation_id: str
    ) -> list[ExchangeRecord]:
        statement = (
            select(ExchangeRecord)
            .where(ExchangeRecord.conversation_id == conversation_id)
            .order_by(col(ExchangeRecord.created_at), col(ExchangeRecord.sequence))
        )
        return list(db.exec(statement).all())

    def _refresh_session_info(
        self, record: ConversationRecord, exchanges: list[ExchangeRecord]
    ) -> None:
        info = self._session_info.build(
            [self._to_exchange(e) for e in exchanges],
            start_time=_as_utc(record.start_time),
            end_time=_as_utc(record.end_time),
        )
        record.total_duration = info.total_duration
        record.language_pairs = info.language_pairs
        record.exchange_count = info.exchange_count
        record.updated_at = utcnow()

    def _to_conversation(
        self, record: ConversationRecord, exchanges: list[ExchangeRecord]
    ) -> Conversation:
        domain_exchanges = [self._to_exchange(e) for e in exchanges]
        return Conversation(
            id=record.id,
            owner_id=record.owner_id,
            patient_info=PatientInfo.model_validate(record.patient_info),
            exchanges=domain_exchanges,
            session_info=self._session_info.build(
                domain_exchanges,
                start_time=_as_utc(record.start_time),
                end_time=_as_utc(record.end_time),
            ),
            status=ConversationStatus(record.status),
            created_at=_as_utc(record.created_at),
            updated_at=_as_utc(record.updated_at),
        )

    def _to_summary(self, record: ConversationRecord) -> ConversationSummary:
        patient = record.patient_info or {}
        return ConversationSummary(
            id=record.id,
            patient_name=patient.get("patient_name", ""),
            patient_id=patient.get("patient_id"),
            doctor_name=patient.get("doctor_name"),
            visit_type=patient.get("visit_type"),
            status=ConversationStatus(record.status),
            exchange_count=record.exchange_count,
            total_duration=record.total_duration,
            language_pairs=list(record.language_pairs or []),
            created_at=_as_utc(record.created_at),
        )

    def _to_exchange(self, record: ExchangeRecord) -> Exchange:
        translated = None
        if record.translated_audio_kind and record.translated_audio_value:
            translated = AudioRef(
                kind=record.translated_audio_kind, value=record.translated_audio_value
            )
        error = None
        if record.error_kind:
            error = ExchangeError(
                kind=record.error_kind, message=record.error_message or ""
            )
        return Exchange(
            id=record.id,
            source_language=record.source_language,
            target_language=record.target_language,
            original_audio_ref=AudioRef(
                kind=record.original_audio_kind, value=record.original_audio_value
            ),
            translated_audio_ref=translated,
            status=record.status,
            created_at=_as_utc(record.created_at),
            duration_seconds=record.duration_seconds,
            sequence=record.sequence,
            job_id=record.job_id,
            error=error,
        )

    def _to_exchange_record(
        self, conversation_id: str, exchange: Exchange, now: datetime
    ) -> ExchangeRecord:
        translated = exchange.translated_audio_ref
        return ExchangeRecord(
            id=exchange.id,
            conversation_id=conversation_id,
            sequence=exchange.sequence,
            source_language=exchange.source_language,
            target_language=exchange.target_language,
            status=exchange.status.value,
            original_audio_kind=exchange.original_audio_ref.kind.value,
            original_audio_value=exchange.original_audio_ref.value,
            translated_audio_kind=translated.kind.value if translated else None,
            translated_audio_value=translated.value if translated else None,
            job_id=exchange.job_id,
            error_kind=exchange.error.kind.value if exchange.error else None,
            error_message=exchange.error.message if exchange.error else None,
            duration_seconds=exchange.duration_seconds,
            created_at=exchange.created_at,
            updated_at=now,
        )
