"""Custom error definitions for API exceptions."""
from fastapi import HTTPException
from starlette import status


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class InvalidCredentialsError(HTTPException):
    def __init__(self, detail: str = "Invalid credentials"):
        super().__init__(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Forbidden"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class ConnectionAccessDenied(Forbidden):
    def __init__(self, detail: str = "Unauthorized access to connection"):
        super().__init__(detail=detail)


class SessionAccessDenied(Forbidden):
    def __init__(self, detail: str = "Unauthorized access to session"):
        super().__init__(detail=detail)


class UserNotFoundError(HTTPException):
    def __init__(self, detail: str = "User not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ConnectionNotFoundError(HTTPException):
    def __init__(self, detail: str = "Connection not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class SessionNotFoundError(HTTPException):
    def __init__(self, detail: str = "Session not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class UserAlreadyExistsError(HTTPException):
    def __init__(self, detail: str = "User already exists"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)
