# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base models with shared pydantic configuration.
"""

from pydantic import BaseModel, ConfigDict


class BaseRecord(BaseModel):
    """Base for records received from the backend."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Unknown backend fields are ignored
        extra="ignore",
        # Snapshots are replaced, never edited in place
        frozen=True
    )


class BaseRequest(BaseModel):
    """Base for payloads submitted to the backend."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        str_strip_whitespace=True
    )
