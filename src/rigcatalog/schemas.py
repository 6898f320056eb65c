from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field


class Category(str, Enum):
    CPU = "cpu"
    MOTHERBOARD = "motherboard"
    MEMORY = "memory"
    STORAGE = "storage"
    GPU = "gpu"
    POWER_SUPPLY = "powersupply"
    CASE = "case"
    COOLER = "cooler"
    MONITOR = "monitor"
    EXPANSION_CARD = "expansioncard"
    PERIPHERALS = "peripherals"
    OTHER = "other"

    @classmethod
    def valid(cls, tag: object) -> bool:
        """Exact, case-sensitive membership test against the closed vocabulary."""
        if isinstance(tag, Category):
            return True
        return isinstance(tag, str) and tag in _CATEGORY_VALUES


_CATEGORY_VALUES = frozenset(c.value for c in Category)


class Component(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    category: Category
    brand: str = Field(min_length=1)
    model: str = Field(min_length=1)
    sku: Optional[str] = None
    upc: Optional[str] = None
    specs: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime


class ComponentQuery(BaseModel):
    """One inbound lookup; empty strings mean "not supplied"."""

    id: str = ""
    category: str = ""
    brand: str = ""
    page: Optional[str] = None

    def shape(self) -> str:
        # 最具体的过滤条件优先 - the most specific filter present wins
        if self.id:
            return "by_id"
        if self.category and self.brand:
            return "by_category_and_brand"
        if self.category:
            return "by_category"
        return "all"


T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    code: int
    message: str
    data: Optional[T] = None


ComponentData = Union[Component, List[Component]]
