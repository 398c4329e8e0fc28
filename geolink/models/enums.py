# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Geolink location sharing service.
"""

from enum import Enum


class MessageKind(str, Enum):
    """Kinds of records delivered through an account mailbox."""
    LINK_REQUEST = "link_request"
    LINK_APPROVED = "link_approved"


class LinkState(str, Enum):
    """
    Observable state of a (requester, target) link.

    Rejection is silent, so there is no REJECTED member: a rejected request
    looks exactly like NO_RELATION once the target's mailbox is drained.
    """
    NO_RELATION = "no_relation"
    REQUESTED = "requested"
    APPROVED = "approved"
