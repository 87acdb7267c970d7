from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
import jwt
from sqlalchemy.orm import Session

from models.access import Actor, ActorRole
from models.config import settings
from models.exceptions import AuthenticationException
from repositories.database import get_db
from services.access_policy import AccessPolicy
from services.audit_service import AuditTrail, DatabaseAuditTrail

# Tokens are issued by the identity service; this backend only verifies them
bearer_scheme = HTTPBearer(auto_error=False)


def decode_actor(token: str) -> Actor:
    """
    Build an Actor from a bearer token.

    Raises:
        AuthenticationException: If the token is invalid, expired, or lacks
            a member id or a known role.
    """
    try:
        payload = jwt.decode(
            token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM]
        )
    except jwt.exceptions.InvalidTokenError:
        raise AuthenticationException("Could not validate credentials")

    subject = payload.get("sub")
    if not subject:
        raise AuthenticationException("Could not validate credentials")

    try:
        role = ActorRole(payload.get("role", ActorRole.MEMBER.value))
    except ValueError:
        raise AuthenticationException("Unknown role in credentials")

    return Actor(id=str(subject), role=role)


async def get_current_actor(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Actor:
    """
    Get the authenticated actor from the bearer token.

    Raises:
        AuthenticationException: If no token was sent or it does not verify.
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationException("Not authenticated")
    return decode_actor(credentials.credentials)


async def get_moderator_actor(
    current_actor: Actor = Depends(get_current_actor),
) -> Actor:
    """
    Require a moderator or administrator.

    Raises:
        InsufficientPermissionsException: If the actor is a plain member.
    """
    AccessPolicy.ensure_moderator(current_actor)
    return current_actor


async def get_admin_actor(
    current_actor: Actor = Depends(get_current_actor),
) -> Actor:
    """
    Require an administrator.

    Raises:
        InsufficientPermissionsException: If the actor is not an administrator.
    """
    AccessPolicy.ensure_administrator(current_actor)
    return current_actor


def get_audit_trail(db: Session = Depends(get_db)) -> AuditTrail:
    """Audit trail bound to the request's database session."""
    return DatabaseAuditTrail(db)
