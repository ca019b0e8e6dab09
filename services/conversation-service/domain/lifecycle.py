"""Conversation status transition rules."""

from domain.models import Conversation, ConversationStatus
from exceptions import InvalidConversationStateError


def ensure_accepts_recordings(conversation: Conversation) -> None:
    if conversation.status is not ConversationStatus.ACTIVE:
        raise InvalidConversationStateError(
            conversation.id, conversation.status.value, "record into"
        )


def ensure_can_complete(conversation: Conversation) -> None:
    if conversation.status is not ConversationStatus.ACTIVE:
        raise InvalidConversationStateError(
            conversation.id, conversation.status.value, "complete"
        )
    if not conversation.exchanges:
        raise InvalidConversationStateError(
            conversation.id, conversation.status.value, "complete an empty"
        )


def ensure_can_archive(conversation: Conversation) -> None:
    # archived is final; only completed conversations move forward
    if conversation.status is not ConversationStatus.COMPLETED:
        raise InvalidConversationStateError(
            conversation.id, conversation.status.value, "archive"
        )
