# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for the notification mailbox.
"""

import threading

from geolink.domain import links as link_domain
from geolink.models.enums import MessageKind
from geolink.services.mailbox import NotificationMailbox
from geolink.services.keyed_locks import KeyedLocks


class TestNotificationMailbox:
    """Test mailbox enqueue and drain semantics."""

    def test_drain_empty_mailbox_returns_empty_list(self):
        mailbox = NotificationMailbox()

        assert mailbox.drain_all("nobody@example.com") == []

    def test_drain_returns_messages_in_fifo_order(self):
        mailbox = NotificationMailbox()
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("bob@example.com"))
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("carol@example.com"))
        mailbox.enqueue("alice@example.com", link_domain.link_approved_message("dave@example.com"))

        drained = mailbox.drain_all("alice@example.com")

        assert [m.origin for m in drained] == [
            "bob@example.com", "carol@example.com", "dave@example.com"
        ]
        assert [m.kind for m in drained] == [
            MessageKind.LINK_REQUEST, MessageKind.LINK_REQUEST, MessageKind.LINK_APPROVED
        ]

    def test_drain_empties_queue(self):
        mailbox = NotificationMailbox()
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("bob@example.com"))

        assert len(mailbox.drain_all("alice@example.com")) == 1
        assert mailbox.drain_all("alice@example.com") == []
        assert mailbox.depth("alice@example.com") == 0

    def test_mailboxes_are_isolated(self):
        mailbox = NotificationMailbox()
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("bob@example.com"))

        assert mailbox.drain_all("bob@example.com") == []
        assert mailbox.depth("alice@example.com") == 1

    def test_peek_does_not_consume(self):
        mailbox = NotificationMailbox()
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("bob@example.com"))

        peeked = mailbox.peek("alice@example.com")
        peeked.clear()

        assert mailbox.depth("alice@example.com") == 1
        assert len(mailbox.drain_all("alice@example.com")) == 1

    def test_mailbox_count_tracks_created_queues(self):
        mailbox = NotificationMailbox()
        assert mailbox.mailbox_count() == 0

        mailbox.enqueue("alice@example.com", link_domain.link_request_message("bob@example.com"))
        mailbox.enqueue("alice@example.com", link_domain.link_request_message("carol@example.com"))
        mailbox.enqueue("bob@example.com", link_domain.link_approved_message("alice@example.com"))

        assert mailbox.mailbox_count() == 2

    def test_concurrent_enqueue_and_drain_delivers_each_message_once(self):
        """Racing producers and drainers: every message shows up in exactly one drain."""
        mailbox = NotificationMailbox()
        owner = "alice@example.com"
        producers = 4
        per_producer = 200
        drained = []
        drained_lock = threading.Lock()
        done = threading.Event()

        def produce(index):
            for n in range(per_producer):
                mailbox.enqueue(owner, link_domain.link_request_message(f"user{index}-{n}@example.com"))

        def drain():
            while not done.is_set():
                batch = mailbox.drain_all(owner)
                with drained_lock:
                    drained.extend(batch)

        drainers = [threading.Thread(target=drain) for _ in range(3)]
        workers = [threading.Thread(target=produce, args=(i,)) for i in range(producers)]
        for thread in drainers + workers:
            thread.start()
        for thread in workers:
            thread.join()
        done.set()
        for thread in drainers:
            thread.join()
        drained.extend(mailbox.drain_all(owner))

        origins = [m.origin for m in drained]
        assert len(origins) == producers * per_producer
        assert len(set(origins)) == len(origins)

    def test_concurrent_drains_hand_the_queue_to_one_caller(self):
        mailbox = NotificationMailbox()
        owner = "alice@example.com"
        for n in range(100):
            mailbox.enqueue(owner, link_domain.link_request_message(f"user{n}@example.com"))

        results = []
        results_lock = threading.Lock()

        def drain():
            batch = mailbox.drain_all(owner)
            with results_lock:
                results.append(batch)

        threads = [threading.Thread(target=drain) for _ in range(5)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        non_empty = [batch for batch in results if batch]
        assert len(non_empty) == 1
        assert [m.origin for m in non_empty[0]] == [f"user{n}@example.com" for n in range(100)]


class TestKeyedLocks:
    """Test the per-key lock table."""

    def test_same_key_returns_same_lock(self):
        locks = KeyedLocks()

        assert locks.get("alice@example.com") is locks.get("alice@example.com")
        assert len(locks) == 1

    def test_different_keys_return_different_locks(self):
        locks = KeyedLocks()

        assert locks.get("alice@example.com") is not locks.get("bob@example.com")
        assert len(locks) == 2

    def test_lock_for_one_key_does_not_block_another(self):
        locks = KeyedLocks()

        with locks.get("alice@example.com"):
            assert locks.get("bob@example.com").acquire(blocking=False)
            locks.get("bob@example.com").release()
