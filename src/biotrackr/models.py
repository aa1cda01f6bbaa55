"""Document schema and Fitbit payload models."""

import re
from datetime import date
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Canonical document date, e.g. "2024-01-15"
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_document_date(value: str) -> date:
    """Parse a canonical YYYY-MM-DD date string.

    Raises:
        ValueError: If the value is not a valid calendar date in that form.
    """
    if not isinstance(value, str) or not _DATE_RE.match(value):
        raise ValueError(f"Date must use the YYYY-MM-DD format, got {value!r}")
    return date.fromisoformat(value)


class DocumentType(str, Enum):
    """Metric domains; the value doubles as the store partition key."""

    ACTIVITY = "Activity"
    SLEEP = "Sleep"
    WEIGHT = "Weight"
    FOOD = "Food"

    @property
    def slug(self) -> str:
        """Lowercase name used for CLI arguments and URL prefixes."""
        return self.value.lower()

    @classmethod
    def from_slug(cls, slug: str) -> "DocumentType":
        for member in cls:
            if member.slug == slug.lower():
                return member
        raise ValueError(f"Unknown metric domain '{slug}'")


class Document(BaseModel):
    """Canonical persisted record for one metric observation."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str = Field(min_length=1, description="Container-wide unique identifier")
    payload: dict[str, Any] = Field(description="Domain-specific metric body")
    date: str = Field(description="Day the payload describes (YYYY-MM-DD)")
    document_type: DocumentType = Field(alias="documentType")

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        parse_document_date(v)
        return v

    def to_item(self) -> dict[str, Any]:
        """Serialize to the JSON body stored in the container."""
        return self.model_dump(mode="json", by_alias=True)


class _ProviderModel(BaseModel):
    """Base for Fitbit payloads; keeps any field the provider adds."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)


# -- Activity --


class ActivityGoals(_ProviderModel):
    activeMinutes: int | None = None
    caloriesOut: int | None = None
    distance: float | None = None
    floors: int | None = None
    steps: int | None = None


class ActivitySummary(_ProviderModel):
    activityCalories: int | None = None
    caloriesOut: int | None = None
    fairlyActiveMinutes: int | None = None
    lightlyActiveMinutes: int | None = None
    sedentaryMinutes: int | None = None
    veryActiveMinutes: int | None = None
    restingHeartRate: int | None = None
    steps: int | None = None
    floors: int | None = None
    distances: list[dict[str, Any]] = Field(default_factory=list)
    heartRateZones: list[dict[str, Any]] = Field(default_factory=list)


class ActivityResponse(_ProviderModel):
    """Daily activity summary from ``/activities/date/{date}.json``."""

    activities: list[dict[str, Any]] = Field(default_factory=list)
    goals: ActivityGoals | None = None
    summary: ActivitySummary


# -- Sleep --


class SleepStage(_ProviderModel):
    count: int | None = None
    minutes: int | None = None
    thirtyDayAvgMinutes: int | None = None


class SleepLog(_ProviderModel):
    dateOfSleep: str
    duration: int | None = None
    efficiency: int | None = None
    startTime: str | None = None
    endTime: str | None = None
    isMainSleep: bool | None = None
    logId: int | None = None
    minutesAsleep: int | None = None
    minutesAwake: int | None = None
    timeInBed: int | None = None
    type: str | None = None
    levels: dict[str, Any] | None = None


class SleepSummary(_ProviderModel):
    totalMinutesAsleep: int | None = None
    totalSleepRecords: int | None = None
    totalTimeInBed: int | None = None
    stages: dict[str, int] | None = None
    deep: SleepStage | None = None
    light: SleepStage | None = None
    rem: SleepStage | None = None
    wake: SleepStage | None = None


class SleepResponse(_ProviderModel):
    """Sleep logs from ``/sleep/date/{date}.json``."""

    sleep: list[SleepLog] = Field(default_factory=list)
    summary: SleepSummary


# -- Weight --


class WeightLog(_ProviderModel):
    """A single body-weight sample."""

    date: str
    weight: float
    bmi: float | None = None
    fat: float | None = None
    logId: int | str | None = None
    source: str | None = None
    time: str | None = None

    @field_validator("date")
    @classmethod
    def validate_date(cls, v: str) -> str:
        parse_document_date(v)
        return v


class WeightResponse(_ProviderModel):
    """Weight samples from ``/body/log/weight/date/{start}/{end}.json``."""

    weight: list[WeightLog] = Field(default_factory=list)


# -- Food --


class FoodSummary(_ProviderModel):
    calories: float | None = None
    carbs: float | None = None
    fat: float | None = None
    fiber: float | None = None
    protein: float | None = None
    sodium: float | None = None
    water: float | None = None


class FoodResponse(_ProviderModel):
    """Food log from ``/foods/log/date/{date}.json``."""

    foods: list[dict[str, Any]] = Field(default_factory=list)
    goals: dict[str, Any] | None = None
    summary: FoodSummary
