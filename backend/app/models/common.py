"""Common data types shared by the intent and itinerary models."""

from __future__ import annotations

import hashlib
import json
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Locale = Literal["en", "zh"]

DEFAULT_CURRENCY = "NZD"


class CamelModel(BaseModel):
    """Base for models whose wire format uses camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BilingualText(BaseModel):
    """User-facing text carried in both supported locales."""

    en: str = Field(description="English text")
    zh: str = Field(description="Simplified Chinese text")


class Coordinates(BaseModel):
    """Geographic coordinates in WGS84 decimal degrees."""

    lat: float = Field(description="Latitude in decimal degrees")
    lng: float = Field(description="Longitude in decimal degrees")


class Money(BaseModel):
    """Monetary amount in a named currency."""

    amount: float = Field(description="Amount in major units")
    currency: str = Field(description="ISO currency code")


def compute_digest(data: Any) -> str:
    """
    Compute SHA256 digest of JSON-serializable data.

    Args:
        data: Any JSON-serializable data

    Returns:
        Hex string digest of the data
    """
    # Stable JSON representation
    json_str = json.dumps(data, sort_keys=True, default=str, ensure_ascii=True)
    return hashlib.sha256(json_str.encode("utf-8")).hexdigest()
