"""
Product formatter: project a raw product document onto CanonicalProduct.

Catalog documents come from manual admin entry, brand self-service and
historical imports, so any of the structured (options/variants/media) or
legacy (colors/sizes/images/imagesByColor) fields may be present, missing or
half-filled. The projection carries both families side by side; it cannot
invent structured data that was never authored.
"""

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ValidationError

from identifiers import normalize_id
from models import (
    CanonicalProduct,
    MediaAsset,
    OptionDefinition,
    Variant,
    _optional_float,
    _optional_int,
    _optional_str,
    _url_list,
    _url_of,
)

logger = logging.getLogger(__name__)


def _non_empty_list(value: Any) -> bool:
    return isinstance(value, (list, tuple)) and len(value) > 0


def uses_new_variant_system(raw: Mapping[str, Any]) -> bool:
    """True when the document carries structured option/media data or says so explicitly.

    Informational only: resolution always tries structured then legacy data.
    """
    return (
        raw.get("usesNewVariantSystem") is True
        or raw.get("uses_new_variant_system") is True
        or _non_empty_list(raw.get("options"))
        or _non_empty_list(raw.get("media"))
    )


def _first_present(raw: Mapping[str, Any], *keys: str) -> Any:
    """First value among keys that is neither None nor an empty string."""
    for key in keys:
        val = raw.get(key)
        if val is not None and val != "":
            return val
    return None


def _validate_entries(model: type[BaseModel], value: Any, field: str, product_id: str | None) -> list:
    """Validate each list entry on its own; drop the ones that cannot be read."""
    if not isinstance(value, (list, tuple)):
        if value is not None:
            logger.warning("Product %s: %s is %s, not a list; ignoring", product_id, field, type(value).__name__)
        return []

    entries = []
    for idx, item in enumerate(value):
        if isinstance(item, model):
            entries.append(item)
            continue
        if not isinstance(item, Mapping):
            logger.warning("Product %s: dropping %s[%d] (%s)", product_id, field, idx, type(item).__name__)
            continue
        try:
            entries.append(model.model_validate(dict(item)))
        except ValidationError as e:
            logger.warning("Product %s: dropping invalid %s[%d]: %s", product_id, field, idx, e)
    return entries


def _label_list(value: Any) -> list[str]:
    """Legacy colors/sizes keep one slot per entry; blanks become "" so later ids stay positional."""
    if not isinstance(value, (list, tuple)):
        return []
    return [_optional_str(item) or "" for item in value]


def _images_by_color(value: Any) -> dict[str, list[str]]:
    if not isinstance(value, Mapping):
        return {}
    result: dict[str, list[str]] = {}
    for color, urls in value.items():
        key = normalize_id(color)
        if key is None:
            continue
        if isinstance(urls, str):
            urls = [urls]
        result[key] = _url_list(urls)
    return result


def _inventory_map(value: Any) -> dict[str, int]:
    if not isinstance(value, Mapping):
        return {}
    result: dict[str, int] = {}
    for size, count in value.items():
        stock = _optional_int(count)
        if stock is not None:
            result[str(size)] = stock
    return result


def format_product_for_display(raw: Mapping[str, Any] | CanonicalProduct) -> CanonicalProduct:
    """Project a raw product document (legacy, structured or mixed) onto CanonicalProduct.

    Raises TypeError when raw is not a product document at all; that is a
    calling bug, not a data problem. Every data problem degrades to a default.
    """
    if isinstance(raw, CanonicalProduct):
        return raw
    if not isinstance(raw, Mapping):
        raise TypeError(f"product must be a mapping, got {type(raw).__name__}")

    product_id = normalize_id(_first_present(raw, "id", "_id"))
    images = _url_list(raw.get("images"))

    base_price = _optional_float(_first_present(raw, "basePrice", "base_price", "price"))
    main_image = _first_present(raw, "mainImage", "main_image", "image")

    return CanonicalProduct(
        id=product_id,
        title=_optional_str(_first_present(raw, "title", "name")) or "",
        description=_optional_str(raw.get("description")),
        base_price=base_price or 0,
        discount_price=_optional_float(_first_present(raw, "discountPrice", "discount_price")),
        uses_new_variant_system=uses_new_variant_system(raw),
        options=_validate_entries(OptionDefinition, raw.get("options"), "options", product_id),
        variants=_validate_entries(Variant, raw.get("variants"), "variants", product_id),
        media=_validate_entries(MediaAsset, raw.get("media"), "media", product_id),
        colors=_label_list(raw.get("colors")),
        sizes=_label_list(raw.get("sizes")),
        images=images,
        images_by_color=_images_by_color(_first_present(raw, "imagesByColor", "images_by_color")),
        main_image=_url_of(main_image) or (images[0] if images else None),
        inventory=_inventory_map(raw.get("inventory")),
        category=raw.get("category"),
        brand=_first_present(raw, "brand", "brandName"),
        rating=_optional_float(raw.get("rating")),
    )
