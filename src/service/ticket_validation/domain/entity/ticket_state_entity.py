from datetime import datetime
from typing import Optional

import attrs


@attrs.define(frozen=True)
class TicketState:
    """Server-owned ticket state as last observed by this client"""

    ticket_id: str
    is_validated: bool = False
    validated_at: Optional[datetime] = None
    use_count: int = 0
    validation_code: Optional[str] = None
    vote_count: int = 0
    event_id: Optional[str] = None

    def validation_observed_since(self, baseline: 'TicketState') -> bool:
        """
        True when a validation happened after `baseline` was captured.

        Covers first validation, a re-entry bumping use_count and a
        server that only refreshes validated_at.
        """
        if self.is_validated and not baseline.is_validated:
            return True
        if self.use_count > baseline.use_count:
            return True
        return self.validated_at is not None and self.validated_at != baseline.validated_at
