# SPDX-License-Identifier: Apache-2.0

"""
Position gate: the authorization-checked read path for shared positions.
"""

from opentelemetry import trace
import logging

from geolink.domain import links as link_domain
from geolink.models.entities import Coordinate
from geolink.middleware.error_handler import UnknownAccountError, NotAuthorizedError
from geolink.services.identity import IdentityStore
from geolink.services.sharing_registry import SharingRegistry

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class PositionGate:
    """Releases an owner's last position only to authorized viewers."""

    def __init__(self, identity: IdentityStore, registry: SharingRegistry):
        self.identity = identity
        self.registry = registry

    def read_position(self, viewer: str, owner: str) -> Coordinate:
        """
        Return ``owner``'s last position if ``viewer`` may see it.

        The owner's entry is snapshotted once under its lock, and every check
        runs against that snapshot.

        Raises:
            UnknownAccountError: If ``owner`` is not registered
            NotAuthorizedError: If the owner never shared, has sharing off,
                has not approved ``viewer`` or has no position yet
        """
        with tracer.start_as_current_span("position_gate.read") as span:
            span.set_attributes({"position.viewer": viewer, "position.owner": owner})

            if not self.identity.account_exists(owner):
                span.set_attribute("position.result", "unknown_account")
                raise UnknownAccountError(owner)

            snapshot = self.registry.snapshot(owner)
            access = link_domain.check_position_access(snapshot, viewer)

            if not access.allowed:
                span.set_attribute("position.result", access.reason)
                logger.debug(
                    "Position read denied",
                    extra={"viewer": viewer, "owner": owner, "reason": access.reason}
                )
                raise NotAuthorizedError()

            span.set_attribute("position.result", "released")
            return snapshot.last_position
