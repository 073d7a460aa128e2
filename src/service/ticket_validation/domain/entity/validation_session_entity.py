from datetime import datetime
from typing import Optional

import attrs


@attrs.define
class ValidationSession:
    """
    Transient, client-owned validation session.

    Lives from a successful session start until expiry, observed validation,
    cancellation or teardown. Never persisted.
    """

    generation: int
    remaining_seconds: int
    started_at: datetime
    session_token: Optional[str] = None
    current_token: Optional[str] = None
    current_code: Optional[str] = None
    qr_image: Optional[str] = None

    def tick(self, *, step: int = 1) -> int:
        self.remaining_seconds = max(0, self.remaining_seconds - step)
        return self.remaining_seconds

    def apply_proof(self, *, token: str, code: str, qr_image: str) -> None:
        self.current_token = token
        self.current_code = code
        self.qr_image = qr_image
