"""HTTP error taxonomy shared by endpoints and services.

Each class is an HTTPException so FastAPI renders it as
``{"detail": ...}`` with the matching status code. Anything that is not
one of these reaches the catch-all handler in ``app.main`` and becomes a
generic 500.
"""

from fastapi import HTTPException, status


class UnauthorizedError(HTTPException):
    def __init__(self, detail: str = "Unauthorized"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class ForbiddenError(HTTPException):
    def __init__(self, detail: str = "Insufficient permissions"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(HTTPException):
    """Missing row, or a row owned by another organization.

    Both cases produce the same response so callers cannot discover
    other tenants' records.
    """

    def __init__(self, resource: str = "Resource"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=f"{resource} not found")


class ValidationError(HTTPException):
    def __init__(self, detail: str):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)
