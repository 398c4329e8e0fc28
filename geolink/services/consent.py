# SPDX-License-Identifier: Apache-2.0

"""
Consent coordinator.

Orchestrates the link handshake: a requester asks, the target is notified
through its mailbox, and on approval the requester is added to the target's
viewers and notified back. The coordinator is the only writer of viewer
membership in the sharing registry.

Per (requester, target) pair the observable states are
NO_RELATION -> REQUESTED -> APPROVED. Rejection is silent: the requester
is never told, and nothing changes on the server.
"""

from typing import Optional
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from geolink.domain import links as link_domain
from geolink.models.entities import Coordinate, SharingSnapshot
from geolink.models.enums import LinkState
from geolink.middleware.error_handler import UnknownAccountError, SelfLinkError
from geolink.services.identity import IdentityStore
from geolink.services.mailbox import NotificationMailbox
from geolink.services.sharing_registry import SharingRegistry

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class ConsentCoordinator:
    """Request / approve / revoke flow between two accounts."""

    def __init__(self, identity: IdentityStore, mailbox: NotificationMailbox, registry: SharingRegistry):
        self.identity = identity
        self.mailbox = mailbox
        self.registry = registry

    def _require_account(self, account: str, span) -> None:
        if not self.identity.account_exists(account):
            span.set_status(Status(StatusCode.ERROR, "Unknown account"))
            logger.warning("Unknown account referenced", extra={"account": account})
            raise UnknownAccountError(account)

    def request_link(self, requester: str, target: str) -> None:
        """
        Ask ``target`` for permission to see its position.

        Repeated calls queue repeated requests; there is no de-duplication.

        Raises:
            UnknownAccountError: If ``target`` is not registered
            SelfLinkError: If ``requester`` and ``target`` are the same account
        """
        with tracer.start_as_current_span("consent.request_link") as span:
            span.set_attributes({"consent.requester": requester, "consent.target": target})

            self._require_account(target, span)
            if requester == target:
                raise SelfLinkError(target)

            self.mailbox.enqueue(target, link_domain.link_request_message(requester))

            logger.info("Link requested", extra={"requester": requester, "target": target})

    def approve(self, target: str, requester: str, position: Optional[Coordinate] = None) -> SharingSnapshot:
        """
        Approve ``requester``'s link request and start sharing with it.

        Enabling sharing, adding the viewer and notifying the requester happen
        while the target's registry lock is held, so no reader observes a
        partial approval.

        Args:
            target: Account granting access (the caller)
            requester: Account being granted access
            position: Target's current position, if known

        Returns:
            Target's sharing snapshot after approval

        Raises:
            UnknownAccountError: If ``requester`` is not registered
            SelfLinkError: If ``requester`` and ``target`` are the same account
        """
        with tracer.start_as_current_span("consent.approve") as span:
            span.set_attributes({
                "consent.requester": requester,
                "consent.target": target,
                "consent.position_supplied": position is not None
            })

            self._require_account(requester, span)
            if requester == target:
                raise SelfLinkError(requester)

            with self.registry.locked(target) as entry:
                entry.grant(requester)
                entry.apply_sharing(True, position)
                # Registry lock is held: lock order is registry -> mailbox
                self.mailbox.enqueue(requester, link_domain.link_approved_message(target))
                snapshot = entry.snapshot()

            logger.info(
                "Link approved",
                extra={"requester": requester, "target": target, "viewers": len(snapshot.viewers)}
            )
            return snapshot

    def reject(self, target: str, requester: str) -> None:
        """
        Record that ``target`` declined ``requester``.

        Nothing changes on the server and the requester receives no notice.
        """
        logger.debug("Link rejected", extra={"requester": requester, "target": target})

    def revoke(self, owner: str, viewer: str) -> bool:
        """
        Stop ``viewer`` from reading ``owner``'s position.

        Allowed at any time; the viewer is not notified.

        Returns:
            True if the viewer was authorized before the call
        """
        with tracer.start_as_current_span("consent.revoke") as span:
            span.set_attributes({"consent.owner": owner, "consent.viewer": viewer})

            removed = self.registry.remove_viewer(owner, viewer)

            logger.info("Viewer revoked", extra={"owner": owner, "viewer": viewer, "removed": removed})
            return removed

    def stop_sharing(self, owner: str, viewer: str, position: Optional[Coordinate] = None) -> SharingSnapshot:
        """
        Turn sharing off for ``owner`` and revoke ``viewer`` in one step.

        The stored position is kept (or overwritten if ``position`` is given).

        Raises:
            UnknownAccountError: If ``viewer`` is not registered
            SelfLinkError: If ``viewer`` is ``owner``
        """
        with tracer.start_as_current_span("consent.stop_sharing") as span:
            span.set_attributes({"consent.owner": owner, "consent.viewer": viewer})

            self._require_account(viewer, span)
            if viewer == owner:
                raise SelfLinkError(viewer)

            with self.registry.locked(owner) as entry:
                entry.apply_sharing(False, position)
                entry.viewers.discard(viewer)
                snapshot = entry.snapshot()

            logger.info("Sharing stopped", extra={"owner": owner, "viewer": viewer})
            return snapshot

    def set_own_sharing(self, owner: str, enabled: bool, position: Optional[Coordinate] = None) -> SharingSnapshot:
        """Toggle ``owner``'s sharing flag and optionally update its position."""
        return self.registry.set_sharing(owner, enabled, position)

    def link_state(self, requester: str, target: str) -> LinkState:
        """
        Reconstruct the state of the (requester, target) link.

        The registry and mailbox are read one after the other, so under
        concurrent traffic the answer is advisory.

        Raises:
            UnknownAccountError: If ``target`` is not registered
        """
        with tracer.start_as_current_span("consent.link_state") as span:
            self._require_account(target, span)
            snapshot = self.registry.snapshot(target)
            pending = self.mailbox.peek(target)
            return link_domain.derive_link_state(snapshot, pending, requester)
