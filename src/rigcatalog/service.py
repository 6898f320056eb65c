from __future__ import annotations

import logging
from typing import Callable, List, Optional, TypeVar

from pydantic import TypeAdapter, ValidationError
from redis.exceptions import RedisError

from .cache import ComponentCache, NullCache, cache_key
from .data.query import resolve_page
from .data.repository import ComponentRepository, parse_component_id
from .errors import BadRequestError
from .schemas import Category, Component, ComponentData, ComponentQuery

logger = logging.getLogger(__name__)

T = TypeVar("T")

_COMPONENT = TypeAdapter(Component)
_COMPONENT_LIST = TypeAdapter(List[Component])


class ComponentService:
    def __init__(
        self,
        repository: ComponentRepository,
        cache: ComponentCache | None = None,
        cache_ttl_seconds: int = 60,
    ):
        self.repository = repository
        self.cache = cache if cache is not None else NullCache()
        self.cache_ttl_seconds = cache_ttl_seconds

    def dispatch(self, query: ComponentQuery) -> ComponentData:
        shape = query.shape()
        logger.debug("dispatch shape=%s query=%s", shape, query.model_dump())
        if shape == "by_id":
            return self.get_by_id(query.id, query.page)
        if shape != "all" and not Category.valid(query.category):
            raise BadRequestError(f"unknown category {query.category!r}")
        if shape == "by_category_and_brand":
            return self.get_by_category_and_brand(query.category, query.brand, query.page)
        if shape == "by_category":
            return self.get_by_category(query.category, query.page)
        return self.get_all(query.page)

    def get_all(self, page: Optional[str] = None) -> List[Component]:
        key = cache_key("all", offset=resolve_page(page).offset)
        return self._read_through(key, _COMPONENT_LIST, lambda: self.repository.get_all(page))

    def get_by_category(self, category: str, page: Optional[str] = None) -> List[Component]:
        key = cache_key("category", category, offset=resolve_page(page).offset)
        return self._read_through(
            key, _COMPONENT_LIST, lambda: self.repository.get_by_category(category, page)
        )

    def get_by_category_and_brand(self, category: str, brand: str, page: Optional[str] = None) -> List[Component]:
        key = cache_key("category_brand", category, brand, offset=resolve_page(page).offset)
        return self._read_through(
            key,
            _COMPONENT_LIST,
            lambda: self.repository.get_by_category_and_brand(category, brand, page),
        )

    def get_by_id(self, component_id: str, page: Optional[str] = None) -> Component:
        key = cache_key("id", parse_component_id(component_id), offset=0)
        return self._read_through(key, _COMPONENT, lambda: self.repository.get_by_id(component_id, page))

    def _read_through(self, key: str, adapter: TypeAdapter, load: Callable[[], T]) -> T:
        try:
            cached = self.cache.get(key)
        except RedisError:
            logger.warning("cache get failed for %s, reading from store", key, exc_info=True)
            cached = None
        if cached is not None:
            try:
                value = adapter.validate_json(cached)
            except ValidationError:
                # 损坏的缓存条目按未命中处理 - a corrupt entry counts as a miss
                logger.warning("discarding undecodable cache entry %s", key)
                self._cache_delete(key)
            else:
                logger.debug("cache hit %s", key)
                return value

        # 未命中或异常不缓存 - misses that raise (not found, store errors) are never cached
        value = load()
        try:
            self.cache.set(key, adapter.dump_json(value).decode("utf-8"), self.cache_ttl_seconds)
        except RedisError:
            logger.warning("cache set failed for %s", key, exc_info=True)
        return value

    def _cache_delete(self, key: str) -> None:
        try:
            self.cache.delete(key)
        except RedisError:
            logger.warning("cache delete failed for %s", key, exc_info=True)
