# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Geolink service.
"""

# Base models
from .base import BaseSchema, FrozenSchema, utc_now

# Enumerations
from .enums import MessageKind, LinkState

# Core entities
from .entities import (
    Coordinate,
    MailboxMessage,
    SharingSnapshot,
    Account,
    UserContext
)

# Request models
from .requests import (
    RegisterRequest,
    LoginRequest,
    LinkRequestBody,
    SharePositionRequest,
    SharingToggleRequest,
    RevokeLinkRequest,
    FriendPositionQuery,
    LinkStateQuery
)

# Response models
from .responses import (
    HalLink,
    MessageResponse,
    PositionResponse,
    SharingResponse,
    AuthTokenResponse,
    ErrorResponse
)

__all__ = [
    # Base models
    "BaseSchema",
    "FrozenSchema",
    "utc_now",

    # Enumerations
    "MessageKind",
    "LinkState",

    # Core entities
    "Coordinate",
    "MailboxMessage",
    "SharingSnapshot",
    "Account",
    "UserContext",

    # Request models
    "RegisterRequest",
    "LoginRequest",
    "LinkRequestBody",
    "SharePositionRequest",
    "SharingToggleRequest",
    "RevokeLinkRequest",
    "FriendPositionQuery",
    "LinkStateQuery",

    # Response models
    "HalLink",
    "MessageResponse",
    "PositionResponse",
    "SharingResponse",
    "AuthTokenResponse",
    "ErrorResponse"
]
