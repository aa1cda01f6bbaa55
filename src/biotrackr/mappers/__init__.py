"""Document mappers for Fitbit metric payloads."""

from .activity import ActivityMapper
from .base import BaseMapper
from .food import FoodMapper
from .registry import MapperRegistry
from .sleep import SleepMapper
from .weight import WeightMapper

__all__ = [
    "ActivityMapper",
    "BaseMapper",
    "FoodMapper",
    "MapperRegistry",
    "SleepMapper",
    "WeightMapper",
]
