"""Stricker (Spot Gifts) integration: API client and data transformation."""

from lucia.integrations.stricker.client import CatalogSnapshot, StrickerAPIError, StrickerClient
from lucia.integrations.stricker.transformer import (
    build_color_records,
    build_price_records,
    build_product_records,
    extract_price_tiers,
)

__all__ = [
    "CatalogSnapshot",
    "StrickerAPIError",
    "StrickerClient",
    "build_color_records",
    "build_price_records",
    "build_product_records",
    "extract_price_tiers",
]
