# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base model configuration and shared helpers.
"""

from datetime import datetime, timezone
from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class BaseSchema(BaseModel):
    """Base schema with the settings shared by all Geolink models."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True
    )


class FrozenSchema(BaseModel):
    """Base schema for immutable value objects (messages, snapshots)."""

    model_config = ConfigDict(
        populate_by_name=True,
        use_enum_values=True,
        frozen=True
    )
