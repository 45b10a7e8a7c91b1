"""FastAPI Dependencies

Centralized dependency injection for reuse across all route modules.
The database, voting service and token issuer live on app.state and are
created once in the lifespan (or injected by tests through create_app()).
"""

import secrets
from typing import Optional

from fastapi import Header, HTTPException, Request, status

from config import config
from database.db import Database
from identity.jwt import TokenIssuer
from voting.admin import AdminService
from voting.service import VotingService


def get_db(request: Request) -> Database:
    """Dependency to get shared database instance from app state

    Usage in routes:
        @router.get("/endpoint")
        async def endpoint(db: Database = Depends(get_db)):
            voter = await db.voters.get_voter(uid)
    """
    return request.app.state.db


def get_voting_service(request: Request) -> VotingService:
    return request.app.state.voting


def get_admin_service(request: Request) -> AdminService:
    return AdminService(request.app.state.db)


def get_token_issuer(request: Request) -> Optional[TokenIssuer]:
    return request.app.state.token_issuer


def _bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Authorization header required"
        )
    try:
        scheme, token = authorization.split(" ")
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authorization header format"
        )
    if scheme.lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid authentication scheme"
        )
    return token


async def get_current_identity(
    request: Request, authorization: Optional[str] = Header(None)
) -> str:
    """
    FastAPI dependency yielding the voter id from the bearer access token.

    Raises:
        HTTPException 401 if the token is missing, invalid or expired
        HTTPException 503 if no token secret is configured
    """
    issuer = get_token_issuer(request)
    if issuer is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Voter authentication not configured",
        )

    voter_id = issuer.current_identity(_bearer_token(authorization))
    if not voter_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated"
        )

    request.state.voter_id = voter_id
    return voter_id


async def verify_admin_token(authorization: Optional[str] = Header(None)) -> bool:
    """Verify admin bearer token"""
    if not config.ADMIN_TOKEN:
        raise HTTPException(status_code=500, detail="Admin authentication not configured")

    token = _bearer_token(authorization)
    if not secrets.compare_digest(token, config.ADMIN_TOKEN):
        raise HTTPException(status_code=403, detail="Invalid admin token")
    return True
