"""Models package - settings, Pydantic schemas and domain types."""

from .access import Actor, ActorRole

__all__ = [
    "Actor",
    "ActorRole",
]
