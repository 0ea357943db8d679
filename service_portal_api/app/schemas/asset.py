"""
Pydantic schemas for customer assets.

Assets are registered from the customer portal and belong to the
anonymous session that registered them (``ownerId``).  ``setupDate``
is kept as the ``YYYY-MM-DD`` string the customer entered.
"""

import re
from datetime import date, datetime

from pydantic import BaseModel, Field, field_validator
from typing import Literal

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def check_setup_date(value: str) -> str:
    """Return ``value`` unchanged if it is a calendar date in ISO form."""
    if not _ISO_DATE.match(value):
        raise ValueError("expected a date in YYYY-MM-DD form")
    date.fromisoformat(value)
    return value


class AssetCreate(BaseModel):
    """Input of the asset registration form."""

    asset_type: str = Field(..., alias="assetType", min_length=1, examples=["HVAC Unit"])
    model_or_serial: str = Field(..., alias="modelOrSerial", min_length=1, examples=["SN-9981"])
    setup_date: str = Field(..., alias="setupDate", examples=["2024-01-15"])

    model_config = {
        "populate_by_name": True,
    }

    @field_validator("asset_type", "model_or_serial")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @field_validator("setup_date")
    @classmethod
    def valid_setup_date(cls, value: str) -> str:
        return check_setup_date(value)


class Asset(BaseModel):
    """A stored asset."""

    kind: Literal["asset"] = "asset"
    id: str
    owner_id: str = Field(..., alias="ownerId")
    asset_type: str = Field(..., alias="assetType")
    model_or_serial: str = Field(..., alias="modelOrSerial")
    setup_date: str = Field(..., alias="setupDate")
    registered_at: datetime = Field(..., alias="registeredAt")

    model_config = {
        "populate_by_name": True,
        "frozen": True,
    }

    @field_validator("setup_date")
    @classmethod
    def valid_setup_date(cls, value: str) -> str:
        return check_setup_date(value)
