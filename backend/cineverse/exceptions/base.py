from fastapi import status


class AppError(Exception):
    """Error that maps onto an HTTP response of ``{"detail": ...}``."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    detail: str = "An unexpected error occurred"

    def __init__(self, detail: str | None = None):
        if detail:
            self.detail = detail
        super().__init__(self.detail)

    @property
    def log_level(self) -> str:
        return "ERROR" if self.status_code >= 500 else "WARNING"
