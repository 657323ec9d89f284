"""
Catalog domain module.

Provides the bundled fallback catalog used when no dynamic service data exists.
"""
from .static_catalog import (
    STATIC_DOCTORS,
    STATIC_SERVICE_CATEGORIES,
    parse_display_price,
    static_available_services,
    static_doctors,
)

__all__ = [
    "STATIC_DOCTORS",
    "STATIC_SERVICE_CATEGORIES",
    "parse_display_price",
    "static_available_services",
    "static_doctors",
]
