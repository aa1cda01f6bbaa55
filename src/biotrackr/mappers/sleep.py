"""Sleep log mapper."""

from typing import Any

from pydantic import BaseModel

from ..models import DocumentType, SleepResponse
from .base import BaseMapper


class SleepMapper(BaseMapper):
    """Maps the sleep logs recorded for a night."""

    document_type = DocumentType.SLEEP
    payload_model = SleepResponse

    def summarize(self, payload: BaseModel) -> dict[str, Any]:
        assert isinstance(payload, SleepResponse)
        return {
            "sleep_records": len(payload.sleep),
            "minutes_asleep": payload.summary.totalMinutesAsleep,
        }
