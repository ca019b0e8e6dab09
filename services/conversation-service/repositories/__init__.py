from repositories.conversation_repository import ConversationRepository
from repositories.exchange_ledger import ExchangeLedger

__all__ = ["ConversationRepository", "ExchangeLedger"]
