"""Application ports (interfaces). Implemented by infrastructure adapters."""

from typing import Protocol

from famitree.application.dto import CurrentUser
from famitree.domain import FamilyTreeState


class PersistenceError(Exception):
    """Raised by persistence adapters when the backing store cannot be read or written."""


class PersistenceBackend(Protocol):
    """Stores the encoded family tree as an opaque byte blob."""

    def load_initial(self) -> bytes | None:
        """Return the last saved blob, or None when nothing was saved yet."""
        ...

    def save(self, raw: bytes) -> None:
        """Replace the stored blob. Raises PersistenceError on failure."""
        ...


class StateCodec(Protocol):
    """Converts a FamilyTreeState to and from the persisted byte blob."""

    def encode(self, state: FamilyTreeState) -> bytes:
        ...

    def decode(self, raw: bytes) -> FamilyTreeState:
        """Raises ValidationError when the blob is not a valid snapshot."""
        ...


class CurrentUserProvider(Protocol):
    """Answers who is calling. Only privileged users may write."""

    def current_user(self) -> CurrentUser | None:
        ...
