# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Geolink location sharing service.
"""

import re
from datetime import datetime
from typing import List, Optional, Dict, Any, Tuple
from pydantic import Field, field_validator, model_validator
from .base import BaseSchema, FrozenSchema, utc_now
from .enums import MessageKind


EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


class Coordinate(FrozenSchema):
    """
    A WGS84 position reported by a client.

    Accepts either ``{"latitude": ..., "longitude": ...}`` or the
    ``[lat, lng]`` pair used on the wire.
    """

    latitude: float = Field(..., strict=True, ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., strict=True, ge=-180, le=180, description="Longitude in degrees")

    @model_validator(mode='before')
    @classmethod
    def accept_pair(cls, data: Any) -> Any:
        """Convert a ``[lat, lng]`` pair into named fields."""
        if isinstance(data, (list, tuple)):
            if len(data) != 2:
                raise ValueError('Position must be a [latitude, longitude] pair')
            return {"latitude": data[0], "longitude": data[1]}
        return data

    def as_pair(self) -> List[float]:
        """Wire representation: ``[latitude, longitude]``."""
        return [self.latitude, self.longitude]


class MailboxMessage(FrozenSchema):
    """A record queued in an account mailbox until the next drain."""

    kind: MessageKind = Field(..., description="Message kind")
    origin: str = Field(..., min_length=1, description="Account that caused the message")
    created_at: datetime = Field(default_factory=utc_now, description="Enqueue timestamp")

    def render_text(self) -> str:
        """Human-readable text shown by clients."""
        if self.kind == MessageKind.LINK_REQUEST:
            return f"{self.origin} wants to link and see your position."
        return f"{self.origin} approved your request"

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the notifications endpoint."""
        return {
            "kind": self.kind,
            "origin": self.origin,
            "message": self.render_text(),
            "created_at": self.created_at.isoformat()
        }


class SharingSnapshot(FrozenSchema):
    """Point-in-time, read-only copy of an account's sharing entry."""

    owner: str = Field(..., description="Account that owns the entry")
    enabled: bool = Field(..., description="Whether position sharing is on")
    last_position: Optional[Coordinate] = Field(None, description="Last reported position")
    viewers: Tuple[str, ...] = Field(default_factory=tuple, description="Authorized viewers, sorted")

    def allows(self, viewer: str) -> bool:
        """Check whether ``viewer`` is in the authorized set."""
        return viewer in self.viewers

    def to_payload(self) -> Dict[str, Any]:
        """Serialize for the sharing endpoints."""
        return {
            "owner": self.owner,
            "enabled": self.enabled,
            "position": self.last_position.as_pair() if self.last_position else None,
            "viewers": list(self.viewers)
        }


class Account(BaseSchema):
    """Registered account held by the identity store."""

    email: str = Field(..., description="Account reference (case-sensitive)")
    password_hash: str = Field(..., description="bcrypt password hash")
    created_at: datetime = Field(default_factory=utc_now, description="Registration timestamp")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format without normalizing case."""
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError('Invalid email format')
        return v


class UserContext(BaseSchema):
    """Authenticated caller for request processing."""

    account: str = Field(..., description="Authenticated account reference")
    token_payload: Optional[Dict[str, Any]] = Field(None, description="Original JWT payload")
    ip_address: Optional[str] = Field(None, description="Client IP address")
    user_agent: Optional[str] = Field(None, description="Client user agent")
    session_id: Optional[str] = Field(None, description="Session identifier")
