#!/usr/bin/env python3
"""
Stricker Data Transformer.

Turns raw Stricker API collections into upsert-ready rows for the Spot
catalog tables. Missing or malformed source fields are defaulted, never fatal.

Key Functions:
- build_color_records: Colors -> spot_cores rows
- build_product_records: Products -> spot_produtos rows
- extract_price_tiers: Price1..10 / MinQt1..10 -> quantity ranges
- build_price_records: Optionals -> spot_precos rows with synthesized SKUs
"""

import logging
import math
from typing import Any, Dict, List, Optional

from lucia.integrations.stricker.config import (
    DEFAULT_SUPPLIER,
    MAX_PRICE_TIERS,
    MAX_TEXT_LENGTH,
    OPEN_ENDED_MAX_QTY,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Field Parsing
# =============================================================================

def parse_float(value: Any) -> Optional[float]:
    """
    Parse a vendor numeric field.

    Accepts numbers and numeric strings (comma or dot decimal separator).
    Returns None for anything unparseable, NaN or infinite.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None

    if math.isnan(number) or math.isinf(number):
        return None
    return number


def parse_int(value: Any) -> Optional[int]:
    """Parse a vendor integer field, truncating any fractional part."""
    number = parse_float(value)
    return int(number) if number is not None else None


def text_field(value: Any, default: str = "", max_length: Optional[int] = MAX_TEXT_LENGTH) -> str:
    """Stringify a vendor field, falling back to ``default`` for empty values."""
    if not value:
        value = default
    text = str(value)
    return text[:max_length] if max_length else text


# =============================================================================
# Colors
# =============================================================================

def build_color_records(colors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Build spot_cores rows.

    The color code falls back to the record's position when missing, and the
    name falls back to "Color {code}".
    """
    records = []
    for index, color in enumerate(colors):
        code = text_field(color.get("ColorCode") or index, max_length=None)
        records.append({
            "codigo_cor": code,
            "nome_cor": text_field(color.get("Description"), default=f"Color {code}"),
        })
    return records


# =============================================================================
# Products
# =============================================================================

def build_product_records(products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Build spot_produtos rows. Unparseable prices become 0."""
    records = []
    for product in products:
        price = parse_float(product.get("Price"))
        records.append({
            "referencia_spot": text_field(product.get("ProdReference") or product.get("id")),
            "nome_produto": text_field(product.get("Name")),
            "descricao_curta": text_field(product.get("ShortDescription")),
            "descricao_completa": text_field(product.get("Description"), max_length=None),
            "material": text_field(product.get("Materials")),
            "dimensoes": text_field(product.get("CombinedSizes")),
            "peso_aprox": text_field(product.get("Weight")),
            "cores_disponiveis": text_field(product.get("Colors"), max_length=None),
            "preco_custo_base": price if price is not None else 0.0,
            "fornecedor": text_field(product.get("Supplier"), default=DEFAULT_SUPPLIER),
            "imagem_principal": text_field(product.get("MainImage")),
            "ativo": True,
        })
    return records


# =============================================================================
# Prices
# =============================================================================

def build_price_sku(reference: str, min_qty: int, max_qty: int) -> str:
    """
    Synthesize the unique key of a price tier.

    The reference is shortened so the whole key fits the text column limit.
    """
    suffix = f"-{min_qty}-{max_qty}"
    return f"{reference[:MAX_TEXT_LENGTH - len(suffix)]}{suffix}"


def extract_price_tiers(optional: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    Extract the quantity tiers encoded as numbered fields.

    A tier N is kept when PriceN and MinQtN are both positive. Its maximum is
    MinQt(N+1) - 1 when that minimum exists and exceeds MinQtN, otherwise the
    tier is open-ended.

    Args:
        optional: Raw optionals record

    Returns:
        List of {"min_qty", "max_qty", "price"} dicts in tier order
    """
    tiers = []
    for tier in range(1, MAX_PRICE_TIERS + 1):
        price = parse_float(optional.get(f"Price{tier}"))
        min_qty = parse_int(optional.get(f"MinQt{tier}"))

        if price is None or min_qty is None or price <= 0 or min_qty <= 0:
            continue

        next_min_qty = parse_int(optional.get(f"MinQt{tier + 1}"))
        if next_min_qty is not None and next_min_qty > min_qty:
            max_qty = next_min_qty - 1
        else:
            max_qty = OPEN_ENDED_MAX_QTY

        tiers.append({"min_qty": min_qty, "max_qty": max_qty, "price": price})
    return tiers


def build_price_records(optionals: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """
    Build spot_precos rows (without ``produto_id``, resolved by the sync).

    Records without a product reference are skipped.
    """
    records = []
    skipped = 0
    for optional in optionals:
        reference = text_field(optional.get("ProdReference") or optional.get("ProductReference"))
        if not reference:
            skipped += 1
            continue

        for tier in extract_price_tiers(optional):
            records.append({
                "referencia_spot": reference,
                "sku": build_price_sku(reference, tier["min_qty"], tier["max_qty"]),
                "quantidade_minima": tier["min_qty"],
                "quantidade_maxima": tier["max_qty"],
                "preco_unitario": tier["price"],
            })

    if skipped:
        logger.warning(f"Skipped {skipped} optional(s) without a product reference")
    return records
