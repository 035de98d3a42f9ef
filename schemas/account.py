from __future__ import annotations

from pydantic import field_validator

from schemas.user import CamelModel


class AccountCreate(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        name = (value or "").strip()
        if not name or len(name) > 100:
            raise ValueError("name must be 1-100 characters")
        return name
