"""Itinerary models for generation requests and generated plans."""

from __future__ import annotations

import re
from datetime import date
from typing import Literal

from pydantic import Field, field_validator

from .common import BilingualText, CamelModel, Coordinates, Locale, Money

_TIME_RE = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")

BudgetTier = Literal["low", "medium", "high"]
Pace = Literal["relaxed", "moderate", "fast"]


class ItineraryPreferences(CamelModel):
    """Traveler preferences used to steer generation."""

    interests: list[str] | None = Field(
        default=None, description="Interests, e.g. nature, culture, food"
    )
    budget: BudgetTier | None = Field(default=None, description="Budget tier")
    pace: Pace | None = Field(default=None, description="Travel pace")
    accommodation: str | None = Field(
        default=None, description="Accommodation preference, e.g. hotel, hostel"
    )
    transportation: str | None = Field(
        default=None, description="Transportation preference, e.g. car, public"
    )


class GenerateItineraryRequest(CamelModel):
    """Input to itinerary generation.

    Date ordering is deliberately not validated here; the chain checks it so the
    failure surfaces as a typed error before any paid model call.
    """

    destination: str = Field(min_length=1, description="Destination city or region")
    start_date: date = Field(description="First travel day")
    end_date: date = Field(description="Last travel day")
    days: int = Field(ge=1, le=30, description="Declared trip length in days")
    travelers: int | None = Field(default=None, ge=1, description="Number of travelers")
    preferences: ItineraryPreferences | None = Field(default=None)
    locale: Locale | None = Field(default=None, description="Output locale")
    specific_requests: str | None = Field(
        default=None, description="Free-text special requests"
    )


class Location(CamelModel):
    """Where an activity takes place."""

    name: str
    address: str | None = None
    coordinates: Coordinates | None = None


class ItineraryActivity(CamelModel):
    """A scheduled activity within a day."""

    time: str = Field(description="Local start time, HH:MM")
    name: BilingualText
    description: BilingualText
    location: Location
    duration: int = Field(gt=0, description="Duration in minutes")
    cost: Money | None = None
    category: str

    @field_validator("time")
    @classmethod
    def validate_time(cls, v: str) -> str:
        """Normalize to zero-padded HH:MM."""
        match = _TIME_RE.match(v)
        if not match:
            raise ValueError("time must be formatted as HH:MM")
        hours, minutes = int(match.group(1)), int(match.group(2))
        if hours > 23 or minutes > 59:
            raise ValueError("time must be a valid time of day")
        return f"{hours:02d}:{minutes:02d}"


class Meals(CamelModel):
    """Meal suggestions for a day."""

    breakfast: str | None = None
    lunch: str | None = None
    dinner: str | None = None


class ItineraryDay(CamelModel):
    """Plan for a single day."""

    day: int = Field(ge=1, description="1-based day number")
    date: str
    activities: list[ItineraryActivity]
    meals: Meals
    accommodation: str | None = None
    notes: BilingualText | None = None

    @property
    def total_duration(self) -> int:
        """Total scheduled activity time in minutes."""
        return sum(activity.duration for activity in self.activities)


class GeneratedItinerary(CamelModel):
    """Complete generated travel plan."""

    title: BilingualText
    summary: BilingualText
    destination: str
    start_date: str
    end_date: str
    days: list[ItineraryDay]
    total_cost: Money | None = None
    recommendations: list[BilingualText]

    @property
    def activity_count(self) -> int:
        """Number of activities across all days."""
        return sum(len(day.activities) for day in self.days)


class ItineraryStatistics(CamelModel):
    """Aggregate figures for an itinerary."""

    total_days: int
    total_activities: int
    total_cost: float
    avg_activities_per_day: int
    avg_daily_budget: int
