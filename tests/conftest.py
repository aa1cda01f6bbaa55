"""Pytest configuration and fixtures."""

from datetime import date
from pathlib import Path
import sys

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from biotrackr.config import (  # noqa: E402
    AppSettings,
    CosmosSettings,
    FitbitSettings,
    HTTPSettings,
    Settings,
    TracingSettings,
)
from biotrackr.models import DocumentType  # noqa: E402
from biotrackr.store import InMemoryDocumentStore  # noqa: E402


class FakeSource:
    """Metric source returning canned payloads and recording calls."""

    def __init__(self, payloads=None, error: Exception | None = None) -> None:
        self.payloads = payloads or {}
        self.error = error
        self.calls: list[tuple[DocumentType, date, date]] = []

    async def fetch(self, document_type: DocumentType, start: date, end: date):
        self.calls.append((document_type, start, end))
        if self.error is not None:
            raise self.error
        return self.payloads[document_type]


@pytest.fixture
def sample_activity_payload():
    """Daily activity summary as returned by Fitbit."""
    return {
        "activities": [
            {
                "activityId": 90009,
                "name": "Run",
                "calories": 420,
                "duration": 2_700_000,
                "startTime": "07:00",
            }
        ],
        "goals": {
            "activeMinutes": 30,
            "caloriesOut": 2500,
            "distance": 8.05,
            "floors": 10,
            "steps": 10000,
        },
        "summary": {
            "activityCalories": 1100,
            "caloriesOut": 2650,
            "fairlyActiveMinutes": 20,
            "lightlyActiveMinutes": 180,
            "sedentaryMinutes": 600,
            "veryActiveMinutes": 45,
            "restingHeartRate": 58,
            "steps": 12034,
            "distances": [{"activity": "total", "distance": 9.1}],
        },
    }


@pytest.fixture
def sample_sleep_payload():
    """One night of sleep as returned by Fitbit."""
    return {
        "sleep": [
            {
                "dateOfSleep": "2024-01-14",
                "duration": 27_600_000,
                "efficiency": 93,
                "startTime": "2024-01-13T23:10:00.000",
                "endTime": "2024-01-14T06:50:00.000",
                "isMainSleep": True,
                "logId": 44_519_001_234,
                "minutesAsleep": 412,
                "minutesAwake": 48,
                "timeInBed": 460,
                "type": "stages",
            }
        ],
        "summary": {
            "stages": {"deep": 85, "light": 220, "rem": 107, "wake": 48},
            "totalMinutesAsleep": 412,
            "totalSleepRecords": 1,
            "totalTimeInBed": 460,
        },
    }


@pytest.fixture
def sample_weight_payload():
    """Three weight samples over two days."""
    return {
        "weight": [
            {
                "bmi": 23.1,
                "date": "2024-01-10",
                "fat": 18.2,
                "logId": 1704873600000,
                "source": "Aria",
                "time": "07:00:00",
                "weight": 75.4,
            },
            {
                "bmi": 23.0,
                "date": "2024-01-12",
                "logId": 1705046400000,
                "source": "API",
                "time": "07:05:00",
                "weight": 75.1,
            },
            {
                "bmi": 22.9,
                "date": "2024-01-12",
                "logId": 1705082400000,
                "source": "API",
                "time": "17:00:00",
                "weight": 74.9,
            },
        ]
    }


@pytest.fixture
def sample_food_payload():
    """Daily food log as returned by Fitbit."""
    return {
        "foods": [
            {
                "isFavorite": False,
                "logDate": "2024-01-14",
                "logId": 9001,
                "loggedFood": {"name": "Oatmeal", "calories": 150, "amount": 1},
            }
        ],
        "goals": {"calories": 2200},
        "summary": {
            "calories": 1850,
            "carbs": 210.5,
            "fat": 60.2,
            "fiber": 30,
            "protein": 95.4,
            "sodium": 1800,
            "water": 2000,
        },
    }


@pytest.fixture
def sample_payloads(
    sample_activity_payload, sample_sleep_payload, sample_weight_payload, sample_food_payload
):
    return {
        DocumentType.ACTIVITY: sample_activity_payload,
        DocumentType.SLEEP: sample_sleep_payload,
        DocumentType.WEIGHT: sample_weight_payload,
        DocumentType.FOOD: sample_food_payload,
    }


@pytest.fixture
def fake_source(sample_payloads) -> FakeSource:
    return FakeSource(sample_payloads)


@pytest.fixture
def memory_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


def make_settings(deterministic_ids: bool = False) -> Settings:
    """Create Settings isolated from env vars."""
    return Settings(
        cosmos=CosmosSettings(_env_file=None, account_key="test-key"),
        fitbit=FitbitSettings(
            _env_file=None,
            access_token="test-token",
            max_retries=3,
            retry_delay_seconds=0,
        ),
        http=HTTPSettings(_env_file=None, host="127.0.0.1", port=8080),
        tracing=TracingSettings(_env_file=None, enabled=False),
        app=AppSettings(_env_file=None, deterministic_ids=deterministic_ids),
    )


@pytest.fixture
def settings() -> Settings:
    return make_settings()
