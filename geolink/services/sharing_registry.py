# SPDX-License-Identifier: Apache-2.0

"""
Sharing registry service.

Holds one sharing entry per account: whether sharing is on, the last
reported position and the set of accounts allowed to read it. Entries are
created lazily and guarded by a lock per owner, so unrelated owners never
contend. Disabling sharing never clears the stored position; it is only
gated from release by the position gate.
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Iterator, Optional, Set
from opentelemetry import trace
import logging

from geolink.models.entities import Coordinate, SharingSnapshot
from geolink.middleware.error_handler import SelfLinkError
from geolink.services.keyed_locks import KeyedLocks

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


@dataclass
class SharingEntry:
    """Mutable sharing state for one owner. Only touch it under the owner's lock."""
    owner: str
    enabled: bool = False
    last_position: Optional[Coordinate] = None
    viewers: Set[str] = field(default_factory=set)

    def apply_sharing(self, enabled: bool, position: Optional[Coordinate] = None) -> None:
        """Set the flag; overwrite the position only when one is given."""
        self.enabled = enabled
        if position is not None:
            self.last_position = position

    def grant(self, viewer: str) -> None:
        """Add ``viewer`` to the authorized set."""
        if viewer == self.owner:
            raise SelfLinkError(viewer)
        self.viewers.add(viewer)

    def snapshot(self) -> SharingSnapshot:
        """Immutable copy of the current state."""
        return SharingSnapshot(
            owner=self.owner,
            enabled=self.enabled,
            last_position=self.last_position,
            viewers=tuple(sorted(self.viewers))
        )


class SharingRegistry:
    """In-memory sharing entries with per-owner mutual exclusion."""

    def __init__(self):
        self._entries: Dict[str, SharingEntry] = {}
        self._locks = KeyedLocks()

    @contextmanager
    def locked(self, owner: str) -> Iterator[SharingEntry]:
        """
        Hold ``owner``'s lock and yield its entry, creating it if absent.

        Lets callers apply several mutations as one atomic unit. Other
        locks may be taken inside, but never another registry lock.
        """
        with self._locks.get(owner):
            entry = self._entries.get(owner)
            if entry is None:
                entry = SharingEntry(owner=owner)
                self._entries[owner] = entry
            yield entry

    def set_sharing(self, owner: str, enabled: bool, position: Optional[Coordinate] = None) -> SharingSnapshot:
        """
        Turn sharing on or off for ``owner``.

        Args:
            owner: Account whose entry is updated
            enabled: New sharing flag
            position: New position; when omitted the stored one is kept

        Returns:
            Snapshot after the update
        """
        with tracer.start_as_current_span("registry.set_sharing") as span:
            span.set_attributes({
                "registry.owner": owner,
                "registry.enabled": enabled,
                "registry.position_supplied": position is not None
            })

            with self.locked(owner) as entry:
                entry.apply_sharing(enabled, position)
                snapshot = entry.snapshot()

            logger.debug(
                "Sharing flag updated",
                extra={"owner": owner, "enabled": enabled, "position_supplied": position is not None}
            )
            return snapshot

    def add_viewer(self, owner: str, viewer: str) -> None:
        """Authorize ``viewer`` to read ``owner``'s position (idempotent)."""
        with tracer.start_as_current_span("registry.add_viewer") as span:
            span.set_attributes({"registry.owner": owner, "registry.viewer": viewer})

            with self.locked(owner) as entry:
                entry.grant(viewer)

    def remove_viewer(self, owner: str, viewer: str) -> bool:
        """
        Remove ``viewer`` from ``owner``'s authorized set.

        Idempotent: a missing viewer or a missing entry is a no-op.

        Returns:
            True if the viewer was present
        """
        with tracer.start_as_current_span("registry.remove_viewer") as span:
            span.set_attributes({"registry.owner": owner, "registry.viewer": viewer})

            with self._locks.get(owner):
                entry = self._entries.get(owner)
                if entry is None or viewer not in entry.viewers:
                    span.set_attribute("registry.removed", False)
                    return False
                entry.viewers.discard(viewer)

            span.set_attribute("registry.removed", True)
            return True

    def snapshot(self, owner: str) -> Optional[SharingSnapshot]:
        """Read-only view of ``owner``'s entry, or None if it was never created."""
        with self._locks.get(owner):
            entry = self._entries.get(owner)
            return entry.snapshot() if entry is not None else None

    def entry_count(self) -> int:
        """Number of sharing entries created so far."""
        return len(self._entries)
