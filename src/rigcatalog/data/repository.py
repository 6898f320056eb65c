"""配件数据仓库 - Component repository"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from pydantic import ValidationError

from ..errors import BadRequestError, ComponentNotFoundError, InvalidCategoryError, StoreError
from ..schemas import Category, Component
from .query import (
    COMPONENTS_SELECT_COLUMNS,
    COMPONENTS_TABLE,
    Filter,
    SelectQuery,
    build_select,
    parse_strict_int,
)
from .store import ComponentStore

logger = logging.getLogger(__name__)


def _decode_specs(value: Any) -> Any:
    # SQLite 存 TEXT，PostgreSQL JSONB 由驱动解码 - TEXT in SQLite, decoded by the driver for JSONB
    if value is None:
        return {}
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8")
    if isinstance(value, str):
        return json.loads(value)
    return value


def _decode_timestamp(value: Any) -> Any:
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def scan_component(row: Mapping[str, Any]) -> Component:
    """Decode one store row; a category outside the closed set fails the read."""
    category = row.get("category")
    if not Category.valid(category):
        raise InvalidCategoryError(category)
    try:
        return Component(
            id=row["id"],
            category=category,
            brand=row["brand"],
            model=row["model"],
            sku=row.get("sku"),
            upc=row.get("upc"),
            specs=_decode_specs(row.get("specs")),
            created_at=_decode_timestamp(row.get("created_at")),
        )
    except (KeyError, ValueError, ValidationError) as exc:
        raise StoreError("scan", f"cannot decode component row: {exc}") from exc


def parse_component_id(token: str) -> int:
    component_id = parse_strict_int(token)
    if component_id is None or component_id <= 0:
        raise BadRequestError(f"component id must be a positive integer, got {token!r}")
    return component_id


class ComponentRepository:
    """
    配件仓库类 - Component Repository Class

    构建分页查询，在存储上执行，并把每一行解码为 Component。
    Builds paginated queries, runs them on the store, and decodes each row into a Component.
    """

    def __init__(self, store: ComponentStore, table: str = COMPONENTS_TABLE):
        self.store = store
        self.table = table

    def _build(self, filter: Optional[Filter], page: Optional[str]) -> SelectQuery:
        return build_select(
            self.table,
            COMPONENTS_SELECT_COLUMNS,
            filter=filter,
            page=page,
            placeholder=self.store.placeholder,
            order_by="id",
        )

    def _fetch(self, operation: str, query: SelectQuery, context: Mapping[str, Any]) -> List[Component]:
        logger.debug("%s start %s", operation, dict(context))
        try:
            rows = self.store.fetch_all(query, operation)
            components = [scan_component(r) for r in rows]
        except (StoreError, InvalidCategoryError):
            logger.exception("%s failed %s", operation, dict(context))
            raise
        logger.info("%s returned %d components %s", operation, len(components), dict(context))
        return components

    def get_all(self, page: Optional[str] = None) -> List[Component]:
        return self._fetch("get_all", self._build(None, page), {"page": page})

    def get_by_category(self, category: str, page: Optional[str] = None) -> List[Component]:
        query = self._build(Filter.equals(category=category), page)
        return self._fetch("get_by_category", query, {"category": category, "page": page})

    def get_by_category_and_brand(self, category: str, brand: str, page: Optional[str] = None) -> List[Component]:
        # 品牌按存储原样大小写精确匹配 - brand matches the stored casing exactly
        query = self._build(Filter.equals(category=category, brand=brand), page)
        return self._fetch(
            "get_by_category_and_brand",
            query,
            {"category": category, "brand": brand, "page": page},
        )

    def get_by_id(self, component_id: str, page: Optional[str] = None) -> Component:
        parsed = parse_component_id(component_id)
        # 单条查询不分页 - a single-row lookup always reads the first page
        query = self._build(Filter.equals(id=parsed), None)
        components = self._fetch("get_by_id", query, {"id": parsed, "page": page})
        if not components:
            raise ComponentNotFoundError(parsed)
        return components[0]
