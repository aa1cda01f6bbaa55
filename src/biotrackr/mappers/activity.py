"""Activity summary mapper."""

from typing import Any

from pydantic import BaseModel

from ..models import ActivityResponse, DocumentType
from .base import BaseMapper


class ActivityMapper(BaseMapper):
    """Maps the daily activity summary."""

    document_type = DocumentType.ACTIVITY
    payload_model = ActivityResponse

    def summarize(self, payload: BaseModel) -> dict[str, Any]:
        assert isinstance(payload, ActivityResponse)
        return {
            "steps": payload.summary.steps,
            "calories_out": payload.summary.caloriesOut,
            "activities": len(payload.activities),
        }
