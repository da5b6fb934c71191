"""Base model for Hardware Control API payloads.

Every response model inherits from :class:`HardwareBaseModel` which
provides ``alias_generator=to_camel`` so camelCase wire keys map to
snake_case fields, and ignores keys the vault does not use.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class HardwareBaseModel(BaseModel):
    """Base for Hardware Control API request and response models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        alias_generator=to_camel,
    )
