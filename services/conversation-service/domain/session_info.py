"""Core business logic for conversation session statistics."""

from datetime import datetime
from typing import Sequence

from domain.models import Exchange, SessionInfo


class SessionInfoBuilder:
    """Derives session statistics from a conversation's exchanges."""

    def build(
        self,
        exchanges: Sequence[Exchange],
        start_time: datetime,
        end_time: datetime | None = None,
    ) -> SessionInfo:
        """
        Builds session info for an ordered sequence of exchanges.

        Args:
            exchanges: Exchanges in recording order.
            start_time: When the conversation was started.
            end_time: When the conversation was completed, if it was.

        Returns:
            SessionInfo whose exchange_count always equals len(exchanges).
        """
        return SessionInfo(
            total_duration=self._total_duration(exchanges, start_time, end_time),
            language_pairs=self._language_pairs(exchanges),
            exchange_count=len(exchanges),
            start_time=start_time,
            end_time=end_time,
        )

    def _total_duration(
        self,
        exchanges: Sequence[Exchange],
        start_time: datetime,
        end_time: datetime | None,
    ) -> float:
        """Sums recording lengths, or falls back to the wall-clock span."""
        if not exchanges:
            return 0.0

        durations = [e.duration_seconds for e in exchanges]
        if all(d is not None for d in durations):
            return float(sum(durations))

        last_seen = end_time or max(e.created_at for e in exchanges)
        return max((last_seen - start_time).total_seconds(), 0.0)

    def _language_pairs(self, exchanges: Sequence[Exchange]) -> list[str]:
        """Distinct source→target pairs in first-seen order."""
        return list(dict.fromkeys(e.language_pair for e in exchanges))
