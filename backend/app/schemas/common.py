"""Shared Pydantic base: camelCase on the wire, snake_case in storage.

Request models accept either spelling; responses are rendered with the
camelCase aliases. This is the single API <-> storage field-mapping point.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class CamelRequest(CamelModel):
    """Request body: unknown fields and non-finite numbers are rejected."""

    model_config = ConfigDict(extra="forbid", allow_inf_nan=False)
