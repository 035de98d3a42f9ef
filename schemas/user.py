from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Request bodies arrive camelCase; fields stay snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UserRegister(CamelModel):
    device_id: str = Field(..., min_length=16, max_length=128)

    @field_validator("device_id")
    @classmethod
    def validate_device_id(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("deviceId must not be blank")
        return value
