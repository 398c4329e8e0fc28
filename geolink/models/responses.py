# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class MessageResponse(BaseModel):
    """Plain acknowledgement response."""

    message: str = Field(..., description="Human-readable result")


class PositionResponse(BaseModel):
    """Position released by the position gate."""

    position: List[float] = Field(..., description="[latitude, longitude]")


class SharingResponse(BaseModel):
    """Caller's own sharing state."""

    owner: str = Field(..., description="Account reference")
    enabled: bool = Field(..., description="Whether sharing is on")
    position: Optional[List[float]] = Field(None, description="Last reported [lat, lng]")
    viewers: List[str] = Field(default_factory=list, description="Authorized viewers")


class AuthTokenResponse(BaseModel):
    """Authentication token response."""

    token: str = Field(..., description="JWT access token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Token expiration in seconds")


class ErrorResponse(BaseModel):
    """RFC 7807 problem details response."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Problem title")
    status: int = Field(..., description="HTTP status code")
    detail: str = Field(..., description="Problem detail")
    instance: str = Field(..., description="Problem instance URI")
    errors: Optional[List[Dict[str, Any]]] = Field(None, description="Validation errors")
