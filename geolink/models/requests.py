# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints.

Field aliases follow the camelCase names clients already send
(``toEmail``, ``friendEmail``); snake_case names are accepted too.
"""

import re
from typing import Optional
from pydantic import Field, field_validator
from .base import BaseSchema
from .entities import Coordinate, EMAIL_PATTERN


class RegisterRequest(BaseSchema):
    """Request model for account registration."""

    email: str = Field(..., description="Account email address")
    password: str = Field(..., min_length=1, max_length=128, description="Account password")

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        """Validate email format."""
        if not re.match(EMAIL_PATTERN, v):
            raise ValueError('Invalid email format')
        return v


class LoginRequest(BaseSchema):
    """Request model for account authentication."""

    email: str = Field(..., min_length=1, description="Account email address")
    password: str = Field(..., min_length=1, description="Account password")


class LinkRequestBody(BaseSchema):
    """Ask another account for permission to see its position."""

    to_email: str = Field(..., alias="toEmail", min_length=1, description="Target account")


class SharePositionRequest(BaseSchema):
    """Approve (``sharing=true``) or stop (``sharing=false``) sharing with one viewer."""

    to_email: str = Field(..., alias="toEmail", min_length=1, description="Viewer account")
    position: Optional[Coordinate] = Field(None, description="Current [lat, lng] position")
    sharing: bool = Field(False, description="Start or stop sharing")


class SharingToggleRequest(BaseSchema):
    """Toggle the caller's own sharing flag and optionally report a position."""

    enabled: bool = Field(..., description="Whether sharing should be on")
    position: Optional[Coordinate] = Field(None, description="Current [lat, lng] position")


class RevokeLinkRequest(BaseSchema):
    """Remove a viewer from the caller's authorized set."""

    viewer_email: str = Field(..., alias="viewerEmail", min_length=1, description="Viewer account")


class FriendPositionQuery(BaseSchema):
    """Query parameters for reading another account's position."""

    friend_email: str = Field(..., alias="friendEmail", min_length=1, description="Sharing account")


class LinkStateQuery(BaseSchema):
    """Query parameters for inspecting the caller's link with another account."""

    target_email: str = Field(..., alias="targetEmail", min_length=1, description="Target account")
