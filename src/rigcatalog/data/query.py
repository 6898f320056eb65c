"""
查询构建与分页 - Query Building and Pagination

把页码和过滤条件翻译成带占位符的 SELECT 语句。
Translate a page token and filter conditions into a parameter-bound SELECT statement.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence, Tuple

DEFAULT_PAGE_SIZE = 50
ALL_COLUMNS = "*"
COMPONENTS_TABLE = "components"
COMPONENTS_SELECT_COLUMNS = ["id", "category", "brand", "model", "sku", "upc", "specs", "created_at"]

_STRICT_INT = re.compile(r"[+-]?[0-9]+")
_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_PLACEHOLDER_STYLES = ("$", "%s", "?")

# 64 位有符号整数上限 - signed 64-bit bound of store integers and offsets
INT64_MAX = 2**63 - 1


def parse_strict_int(token: Optional[str]) -> Optional[int]:
    """
    严格整数解析 - Strict integer parse

    不去除空白，不接受小数或下划线分隔；失败返回 None。
    超出 64 位有符号整数范围同样视为失败。
    No whitespace trimming, no decimals, no underscore grouping; returns None on failure,
    including values outside the signed 64-bit range.
    """
    if not token or not _STRICT_INT.fullmatch(token):
        return None
    value = int(token)
    if not -INT64_MAX - 1 <= value <= INT64_MAX:
        return None
    return value


@dataclass(frozen=True)
class PageWindow:
    limit: int
    offset: int


def resolve_page(token: Optional[str]) -> PageWindow:
    """
    页码解析 - Resolve page token

    参数 Parameters:
        token: 调用方提供的 1 起始页码，可能为空或非法
               Caller-supplied 1-based page token, possibly absent or malformed

    返回 Returns:
        固定页大小与偏移量；页码 <= 1 (含负数) 一律偏移 0
        Fixed page size plus offset; any page <= 1 (negatives included) clamps to offset 0
    """
    page = parse_strict_int(token)
    if page is None or page <= 1:
        return PageWindow(limit=DEFAULT_PAGE_SIZE, offset=0)
    offset = (page - 1) * DEFAULT_PAGE_SIZE
    if offset > INT64_MAX:
        return PageWindow(limit=DEFAULT_PAGE_SIZE, offset=0)
    return PageWindow(limit=DEFAULT_PAGE_SIZE, offset=offset)


@dataclass(frozen=True)
class Filter:
    """Equality conditions ANDed together; values stay out of the statement text."""

    conditions: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def equals(cls, **columns: Any) -> "Filter":
        return cls(tuple(columns.items()))

    def __bool__(self) -> bool:
        return bool(self.conditions)


@dataclass(frozen=True)
class SelectQuery:
    text: str
    params: Tuple[Any, ...] = field(default_factory=tuple)


def _identifier(name: str) -> str:
    if not _IDENTIFIER.fullmatch(name):
        raise ValueError(f"invalid SQL identifier: {name!r}")
    return name


def _placeholder(style: str, position: int) -> str:
    if style == "$":
        return f"${position}"
    return style


def build_select(
    table: str,
    columns: Sequence[str] = (),
    filter: Optional[Filter] = None,
    page: Optional[str] = None,
    placeholder: str = "$",
    order_by: Optional[str] = None,
) -> SelectQuery:
    """
    构建 SELECT 语句 - Build SELECT statement

    SELECT <cols> FROM <table> [WHERE ...] [ORDER BY ...] LIMIT <n> [OFFSET <m>]

    参数 Parameters:
        table: 表名，不能为空
               Table name, must be non-empty
        columns: 列名列表，空列表表示 *
                 Column names; empty means *
        filter: 等值过滤条件，以占位符绑定
                Equality filter, bound through placeholders
        page: 页码令牌
              Page token
        placeholder: "$" (PostgreSQL $1..$n), "%s" (psycopg2) 或 "?" (sqlite3)
        order_by: 可选排序列
                  Optional ordering column

    返回 Returns:
        语句文本与按位置排列的绑定参数
        Statement text plus positional bound values
    """
    if not table:
        raise ValueError("table name is required")
    if placeholder not in _PLACEHOLDER_STYLES:
        raise ValueError(f"unsupported placeholder style: {placeholder!r}")

    cols = ", ".join(_identifier(c) for c in columns) if columns else ALL_COLUMNS
    text = f"SELECT {cols} FROM {_identifier(table)}"

    params: List[Any] = []
    if filter:
        clauses = []
        for column, value in filter.conditions:
            params.append(value)
            clauses.append(f"{_identifier(column)} = {_placeholder(placeholder, len(params))}")
        text += " WHERE " + " AND ".join(clauses)

    if order_by:
        text += f" ORDER BY {_identifier(order_by)}"

    window = resolve_page(page)
    text += f" LIMIT {window.limit}"
    if window.offset > 0:
        text += f" OFFSET {window.offset}"

    return SelectQuery(text=text, params=tuple(params))
