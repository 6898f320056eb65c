"""Data 模块：查询构建、存储适配与仓库"""

from .query import (
    DEFAULT_PAGE_SIZE,
    Filter,
    PageWindow,
    SelectQuery,
    build_select,
    resolve_page,
)
from .repository import ComponentRepository, scan_component
from .store import ComponentStore, PostgresStore, SQLiteStore

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "Filter",
    "PageWindow",
    "SelectQuery",
    "build_select",
    "resolve_page",
    "ComponentRepository",
    "scan_component",
    "ComponentStore",
    "PostgresStore",
    "SQLiteStore",
]
