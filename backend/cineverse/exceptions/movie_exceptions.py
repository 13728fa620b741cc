from fastapi import status

from .base import AppError


class MovieNotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, identifier: str):
        self.identifier = identifier
        detail = f"Movie '{identifier}' not found."
        super().__init__(detail)


class MovieStoreError(AppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, operation: str):
        self.operation = operation
        detail = f"Movie storage failed during {operation}."
        super().__init__(detail)


class MovieResolutionTimeoutError(AppError):
    status_code = status.HTTP_504_GATEWAY_TIMEOUT

    def __init__(self, identifier: str):
        self.identifier = identifier
        detail = f"Resolving movie '{identifier}' took too long."
        super().__init__(detail)


class InvalidMovieQueryError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str):
        detail = f"Invalid movie query: {message}"
        super().__init__(detail)
