"""Mapper registry keyed by document type."""

from ..models import DocumentType
from .activity import ActivityMapper
from .base import BaseMapper
from .food import FoodMapper
from .sleep import SleepMapper
from .weight import WeightMapper

_MAPPER_CLASSES: dict[DocumentType, type[BaseMapper]] = {
    DocumentType.ACTIVITY: ActivityMapper,
    DocumentType.SLEEP: SleepMapper,
    DocumentType.WEIGHT: WeightMapper,
    DocumentType.FOOD: FoodMapper,
}


class MapperRegistry:
    """Registry holding one mapper per metric domain."""

    def __init__(self, deterministic_ids: bool = False) -> None:
        """Initialize registry with a mapper for every document type."""
        self._mappers: dict[DocumentType, BaseMapper] = {
            document_type: mapper_cls(deterministic_ids)
            for document_type, mapper_cls in _MAPPER_CLASSES.items()
        }

    def get(self, document_type: DocumentType) -> BaseMapper:
        """Get the mapper for a document type."""
        return self._mappers[document_type]
