"""FastAPI authentication dependency."""

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shared.models.identity import Principal

security = HTTPBearer(auto_error=False)


async def get_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> Principal:
    """Verify the bearer token of the request.

    Args:
        request (Request): The incoming FastAPI request (carries app state).
        credentials (HTTPAuthorizationCredentials | None): The parsed Authorization header.

    Returns:
        Principal: The authenticated caller.

    Raises:
        AuthenticationError: If the token is missing or invalid (mapped to 401).
    """
    token = credentials.credentials if credentials else None
    return await request.app.state.verifier.verify(token)
