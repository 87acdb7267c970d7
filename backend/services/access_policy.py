"""
Role-scoped access policy shared by reports and appeals.

can_access is the single rule: owners may touch their own records,
moderators and administrators may touch any record. Every other check in
this module is a refinement of it. Nothing here touches the database.
"""

from collections.abc import Iterable

from models.access import PRIVILEGED_ROLES, Actor, ActorRole
from models.exceptions import (
    AppealLockedException,
    InsufficientPermissionsException,
)
from repositories.db_models import AppealStatus

APPELLANT_EDITABLE_FIELDS = frozenset({"appeal_reason"})

# Owner ID that no member holds
_UNOWNED = "\0"


def can_access(actor_id: str, resource_owner_id: str, actor_role: ActorRole) -> bool:
    """
    Decide whether an actor may access a record.

    Args:
        actor_id: ID of the authenticated actor
        resource_owner_id: ID of the member who owns the record
        actor_role: Role issued to the actor

    Returns:
        True for the owning member, moderators and administrators
    """
    if actor_role in PRIVILEGED_ROLES:
        return True
    return actor_id == resource_owner_id


def can_moderate(actor_role: ActorRole) -> bool:
    """Moderator-or-above: access to a record the actor cannot own."""
    return can_access("", _UNOWNED, actor_role)


def can_erase(actor_role: ActorRole) -> bool:
    """Only administrators may permanently destroy records."""
    return can_moderate(actor_role) and actor_role == ActorRole.ADMINISTRATOR


def can_edit_appeal(
    actor_id: str,
    actor_role: ActorRole,
    appellant_id: str,
    status: AppealStatus,
    fields: Iterable[str],
) -> bool:
    """
    Decide whether an actor may change the given appeal fields.

    Moderators and administrators may edit anything. The appellant may edit
    the narrative only, and only while the appeal is pending.
    """
    if not can_access(actor_id, appellant_id, actor_role):
        return False
    if can_moderate(actor_role):
        return True
    return (
        set(fields) <= APPELLANT_EDITABLE_FIELDS and status == AppealStatus.PENDING
    )


class AccessPolicy:
    """Raising wrappers around the policy functions for the service layer."""

    @staticmethod
    def ensure_access(actor: Actor, resource_owner_id: str) -> None:
        """
        Raises:
            InsufficientPermissionsException: If the actor is neither the owner
                nor a moderator/administrator
        """
        if not can_access(actor.id, resource_owner_id, actor.role):
            raise InsufficientPermissionsException(
                "You can only access your own records"
            )

    @staticmethod
    def ensure_moderator(actor: Actor) -> None:
        """
        Raises:
            InsufficientPermissionsException: If the actor is a plain member
        """
        if not can_moderate(actor.role):
            raise InsufficientPermissionsException(
                "Moderator or administrator role required"
            )

    @staticmethod
    def ensure_administrator(actor: Actor) -> None:
        """
        Raises:
            InsufficientPermissionsException: If the actor is not an administrator
        """
        if not can_erase(actor.role):
            raise InsufficientPermissionsException("Administrator role required")

    @staticmethod
    def ensure_self(actor: Actor, appellant_id: str) -> None:
        """
        Require the actor to act on their own behalf, whatever their role.

        Raises:
            InsufficientPermissionsException: If the IDs differ
        """
        if actor.id != appellant_id:
            raise InsufficientPermissionsException(
                "Members may only act on their own behalf"
            )

    @staticmethod
    def ensure_can_edit_appeal(
        actor: Actor,
        appellant_id: str,
        status: AppealStatus,
        fields: Iterable[str],
    ) -> None:
        """
        Raises:
            InsufficientPermissionsException: If the actor may not touch the fields
            AppealLockedException: If the appellant edits a non-pending appeal
        """
        fields = set(fields)
        if can_edit_appeal(actor.id, actor.role, appellant_id, status, fields):
            return
        if (
            can_access(actor.id, appellant_id, actor.role)
            and fields <= APPELLANT_EDITABLE_FIELDS
        ):
            raise AppealLockedException()
        raise InsufficientPermissionsException(
            "You are not allowed to change these appeal fields"
        )
