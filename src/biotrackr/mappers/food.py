"""Food log mapper."""

from typing import Any

from pydantic import BaseModel

from ..models import DocumentType, FoodResponse
from .base import BaseMapper


class FoodMapper(BaseMapper):
    """Maps the daily food log."""

    document_type = DocumentType.FOOD
    payload_model = FoodResponse

    def summarize(self, payload: BaseModel) -> dict[str, Any]:
        assert isinstance(payload, FoodResponse)
        return {
            "foods": len(payload.foods),
            "calories": payload.summary.calories,
        }
