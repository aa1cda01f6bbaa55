"""Body-weight mapper.

Unlike the daily domains, one fetch covers a trailing window and yields a
document per sample, dated by the sample itself.
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from ..errors import MappingError
from ..models import DocumentType, WeightLog, WeightResponse
from ..types import JSONObject
from .base import BaseMapper


class WeightMapper(BaseMapper):
    """Maps individual weight samples."""

    document_type = DocumentType.WEIGHT
    payload_model = WeightLog

    def summarize(self, payload: BaseModel) -> dict[str, Any]:
        assert isinstance(payload, WeightLog)
        return {"weight": payload.weight, "bmi": payload.bmi}

    def items(self, as_of: str, raw: JSONObject) -> list[tuple[str, JSONObject]]:
        """Return one ``(sample date, sample)`` pair per logged weight.

        ``as_of`` is ignored; the window bounds never date a sample.
        """
        if not isinstance(raw, dict):
            raise MappingError(f"Weight payload must be a JSON object, got {type(raw).__name__}")
        try:
            response = WeightResponse.model_validate(raw)
        except ValidationError as e:
            raise MappingError(
                f"Malformed Weight payload: {e.error_count()} validation error(s)"
            ) from e

        samples = raw.get("weight") or []
        return [(log.date, sample) for log, sample in zip(response.weight, samples, strict=True)]

    def natural_key(self, date: str, payload: BaseModel) -> str:
        assert isinstance(payload, WeightLog)
        # Several samples can share a day; logId tells them apart
        suffix = payload.logId if payload.logId is not None else payload.time or "0"
        return f"{self.document_type.value}-{date}-{suffix}"
