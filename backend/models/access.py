"""Actor identity and role definitions."""

import enum
from typing import NamedTuple


class ActorRole(str, enum.Enum):
    """Role issued to an authenticated actor by the identity service."""

    MEMBER = "member"
    MODERATOR = "moderator"
    ADMINISTRATOR = "administrator"


PRIVILEGED_ROLES = frozenset({ActorRole.MODERATOR, ActorRole.ADMINISTRATOR})


class Actor(NamedTuple):
    """An already-verified caller: member id plus issued role."""

    id: str
    role: ActorRole

    @property
    def is_privileged(self) -> bool:
        """True for moderators and administrators."""
        return self.role in PRIVILEGED_ROLES

    @property
    def is_administrator(self) -> bool:
        return self.role == ActorRole.ADMINISTRATOR
