class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int) -> None:
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DomainError(CustomBaseError):
    def __init__(self, message: str, status_code: int = 400) -> None:
        super().__init__(message, status_code)


class ApiError(CustomBaseError):
    """Upstream ticketing API failure (non-2xx response or transport error)"""

    def __init__(self, message: str, status_code: int = 502, payload: dict | None = None) -> None:
        self.payload = payload or {}
        super().__init__(message, status_code)
