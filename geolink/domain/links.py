# SPDX-License-Identifier: Apache-2.0

"""
Link domain logic for consent and position release.

This module contains pure functions: message construction, the position
access check and link state reconstruction. Nothing here touches the
stores; callers pass in snapshots taken under the appropriate lock.
"""

from typing import Iterable, Optional
from dataclasses import dataclass

from geolink.models.entities import MailboxMessage, SharingSnapshot
from geolink.models.enums import LinkState, MessageKind


@dataclass
class AccessResult:
    """Result of a position access check."""
    allowed: bool
    reason: Optional[str] = None


def link_request_message(requester: str) -> MailboxMessage:
    """Message queued for the target when ``requester`` asks to link."""
    return MailboxMessage(kind=MessageKind.LINK_REQUEST, origin=requester)


def link_approved_message(target: str) -> MailboxMessage:
    """Message queued for the requester when ``target`` approves."""
    return MailboxMessage(kind=MessageKind.LINK_APPROVED, origin=target)


def check_position_access(snapshot: Optional[SharingSnapshot], viewer: str) -> AccessResult:
    """
    Decide whether ``viewer`` may read the position in ``snapshot``.

    All four conditions are read from the same snapshot. ``reason`` is for
    logs only and must not be returned to clients.

    Args:
        snapshot: Owner's sharing snapshot, None if the owner never shared
        viewer: Account asking for the position

    Returns:
        AccessResult indicating if the position may be released
    """
    if snapshot is None:
        return AccessResult(allowed=False, reason="no_sharing_entry")

    if not snapshot.enabled:
        return AccessResult(allowed=False, reason="sharing_disabled")

    if not snapshot.allows(viewer):
        return AccessResult(allowed=False, reason="viewer_not_authorized")

    if snapshot.last_position is None:
        return AccessResult(allowed=False, reason="no_position")

    return AccessResult(allowed=True)


def has_pending_request(messages: Iterable[MailboxMessage], requester: str) -> bool:
    """Whether an undrained link request from ``requester`` is among ``messages``."""
    return any(
        message.kind == MessageKind.LINK_REQUEST and message.origin == requester
        for message in messages
    )


def derive_link_state(
    target_snapshot: Optional[SharingSnapshot],
    target_messages: Iterable[MailboxMessage],
    requester: str
) -> LinkState:
    """
    Reconstruct the state of the (requester, target) link.

    Approval wins over a pending request: a duplicate request queued after
    approval does not demote the link.

    Args:
        target_snapshot: Target's sharing snapshot
        target_messages: Target's undrained mailbox contents
        requester: Account that asked to link

    Returns:
        Observable LinkState
    """
    if target_snapshot is not None and target_snapshot.allows(requester):
        return LinkState.APPROVED

    if has_pending_request(target_messages, requester):
        return LinkState.REQUESTED

    return LinkState.NO_RELATION
