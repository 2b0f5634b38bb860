from __future__ import annotations


class BookmartError(Exception):
    """Base error for marketplace operations."""


class CatalogError(BookmartError):
    def __init__(self, message: str, code: str | None = None) -> None:
        self.code = code
        super().__init__(message)


class OwnershipError(CatalogError):
    def __init__(self, table: str, record_id: str) -> None:
        self.table = table
        self.record_id = record_id
        super().__init__(f"No {table} row {record_id} owned by the current user.")


class AuthError(BookmartError):
    pass


class GeocodingError(BookmartError):
    pass


class LocationNotFoundError(GeocodingError):
    def __init__(self, query: str) -> None:
        self.query = query
        super().__init__(f"Location not found: {query}")


class ValidationError(BookmartError, ValueError):
    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)
