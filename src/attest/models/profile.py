"""Profile metadata data models."""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value: Any) -> Any:
    # YAML reads `version: 1.0` and `release: 22.04` as floats
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


class InputType(str, Enum):
    STRING = "String"
    NUMERIC = "Numeric"
    BOOLEAN = "Boolean"
    ARRAY = "Array"
    HASH = "Hash"
    REGEXP = "Regexp"
    ANY = "Any"

    @classmethod
    def _missing_(cls, value: object) -> Optional["InputType"]:
        if isinstance(value, str):
            for member in cls:
                if member.value.lower() == value.lower():
                    return member
        return None


class InputDef(BaseModel):
    name: str
    value: Any = None
    type: InputType = InputType.ANY
    required: bool = False
    sensitive: bool = False
    description: str = ""


class Support(BaseModel):
    """One entry of a profile's ``supports`` list."""

    model_config = ConfigDict(populate_by_name=True)

    platform_family: Optional[str] = Field(default=None, alias="platform-family")
    platform_name: Optional[str] = Field(default=None, alias="platform-name")
    release: Optional[str] = None

    @field_validator("release", mode="before")
    @classmethod
    def coerce_release(cls, value: Any) -> Any:
        return _as_text(value)


class ProfileMetadata(BaseModel):
    name: str
    title: str = ""
    version: str = "0.1.0"
    maintainer: str = ""
    summary: str = ""
    supports: list[Support] = []
    inputs: list[InputDef] = []

    @field_validator("version", mode="before")
    @classmethod
    def coerce_version(cls, value: Any) -> Any:
        return _as_text(value)


class Waiver(BaseModel):
    control_id: str
    run: bool = False
    justification: str = ""
    expiration_date: Optional[date] = None
