"""Error taxonomy for catalog lookups.

Each error carries the HTTP status it maps to at the API boundary; the
message users see comes from ``rigcatalog.responses``, never from the error.
"""

from __future__ import annotations


class CatalogError(Exception):
    status_code = 500


class BadRequestError(CatalogError):
    status_code = 400


class ComponentNotFoundError(CatalogError):
    status_code = 404

    def __init__(self, component_id: int):
        super().__init__(f"component {component_id} not found")
        self.component_id = component_id


class InvalidCategoryError(CatalogError):
    status_code = 500

    def __init__(self, value: object):
        super().__init__(f"invalid category value: {value!r}")
        self.value = value


class StoreError(CatalogError):
    """A store-level failure (connectivity, SQL, timeout) tagged with the operation."""

    status_code = 500

    def __init__(self, operation: str, detail: str):
        super().__init__(f"{operation}: {detail}")
        self.operation = operation
