# SPDX-License-Identifier: Apache-2.0

"""
Notification mailbox service.

Every account owns a FIFO queue of pending messages. Reading the queue is
destructive: ``drain_all`` returns everything queued and empties the queue in
the same critical section, so a record is delivered at most once. There is no
per-message acknowledgement; a client that drains and then fails to act on a
message has lost it. This is the accepted best-effort delivery model for
presence notifications.
"""

from typing import Dict, List
from opentelemetry import trace
import logging

from geolink.models.entities import MailboxMessage
from geolink.services.keyed_locks import KeyedLocks

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class NotificationMailbox:
    """In-memory per-account message queues with atomic drain."""

    def __init__(self):
        self._queues: Dict[str, List[MailboxMessage]] = {}
        self._locks = KeyedLocks()

    def enqueue(self, to: str, message: MailboxMessage) -> None:
        """
        Append a message to an account's queue, creating the queue if absent.

        Args:
            to: Account reference of the recipient
            message: Record to deliver
        """
        with tracer.start_as_current_span("mailbox.enqueue") as span:
            span.set_attributes({
                "mailbox.owner": to,
                "mailbox.message_kind": message.kind,
                "mailbox.origin": message.origin
            })

            with self._locks.get(to):
                queue = self._queues.setdefault(to, [])
                queue.append(message)
                depth = len(queue)

            span.set_attribute("mailbox.depth", depth)
            logger.debug(
                "Message enqueued",
                extra={
                    "owner": to,
                    "kind": message.kind,
                    "origin": message.origin,
                    "depth": depth
                }
            )

    def drain_all(self, owner: str) -> List[MailboxMessage]:
        """
        Return all queued messages for ``owner`` in FIFO order and empty the queue.

        Args:
            owner: Account reference whose mailbox is read

        Returns:
            Drained messages, oldest first (empty list if none)
        """
        with tracer.start_as_current_span("mailbox.drain_all") as span:
            span.set_attribute("mailbox.owner", owner)

            with self._locks.get(owner):
                drained = self._queues.get(owner)
                if drained:
                    self._queues[owner] = []
                else:
                    drained = []

            span.set_attribute("mailbox.drained", len(drained))
            if drained:
                logger.info(
                    "Mailbox drained",
                    extra={"owner": owner, "count": len(drained)}
                )
            return drained

    def peek(self, owner: str) -> List[MailboxMessage]:
        """Non-destructive copy of ``owner``'s queue."""
        with self._locks.get(owner):
            return list(self._queues.get(owner, []))

    def depth(self, owner: str) -> int:
        """Number of messages waiting for ``owner``."""
        with self._locks.get(owner):
            return len(self._queues.get(owner, []))

    def mailbox_count(self) -> int:
        """Number of mailboxes created so far."""
        return len(self._queues)
