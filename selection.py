"""
Selection composition for the product detail page and the cart.

Combines the resolvers in variants.py into the two payloads callers consume:
the view data for rendering the selectors and gallery, and the resolved
line item handed to the cart/checkout collaborator.
"""

import logging
from typing import Any

from pydantic import BaseModel

from formatter import format_product_for_display
from identifiers import normalize_id
from models import CanonicalProduct, SelectableValue, Variant
from variants import (
    find_color,
    find_size,
    get_available_sizes_for_color,
    get_color_values,
    get_default_color,
    get_default_size_for_color,
    get_media_for_color,
    resolve_variant,
)

logger = logging.getLogger(__name__)

MISSING_COLOR_MESSAGE = "Please select a color"
MISSING_SIZE_MESSAGE = "Please select a size"


class SelectionView(BaseModel):
    """Everything the detail page needs to render the selectors and gallery."""

    color_options: list[SelectableValue]
    size_options_for_selected_color: list[SelectableValue]
    media_for_selected_color: list[str]
    default_color_id: str | None
    default_size_id: str | None


class CartSelection(BaseModel):
    """Resolved line item for the cart; opaque to checkout."""

    product_id: str | None
    variant_id: str | None
    resolved_price: float
    resolved_color_display_value: str | None
    resolved_size_display_value: str | None
    in_stock: bool
    image: str | None = None


class SelectionIssue(BaseModel):
    """A selection problem reported to the shopper at add-to-cart time."""

    field: str  # "color" or "size"
    message: str


def build_selection_view(product: Any, color_id: Any = None, size_id: Any = None) -> SelectionView:
    """Selector options and gallery for the current selection.

    Without a color selection the default color drives the size list and
    gallery, matching what the page shows on first load.
    """
    product = format_product_for_display(product)

    default_color = get_default_color(product)
    default_color_id = default_color.id if default_color else None
    default_size = get_default_size_for_color(product, default_color_id)

    active_color = color_id if normalize_id(color_id) is not None else default_color_id
    return SelectionView(
        color_options=get_color_values(product),
        size_options_for_selected_color=get_available_sizes_for_color(product, active_color),
        media_for_selected_color=get_media_for_color(product, active_color),
        default_color_id=default_color_id,
        default_size_id=default_size.id if default_size else None,
    )


def _display_value(match: SelectableValue | None, selector: Any, legacy: str | None) -> str | None:
    if match is not None and match.value is not None:
        return match.value
    if legacy:
        return legacy
    return normalize_id(selector)


def _resolved_price(product: CanonicalProduct, variant: Variant | None) -> float:
    if variant is not None and variant.price is not None:
        return variant.price
    if product.discount_price is not None:
        return product.discount_price
    return product.base_price


def _in_stock(product: CanonicalProduct, variant: Variant | None, size_value: str | None) -> bool:
    if variant is not None and variant.inventory is not None:
        return variant.inventory > 0
    if product.inventory and size_value is not None:
        return product.inventory.get(size_value, 0) > 0
    # No stock data for this selection: treat as available
    return True


def build_cart_selection(product: Any, color_id: Any = None, size_id: Any = None) -> CartSelection:
    """Resolve a (color, size) selection into the payload the cart consumes."""
    product = format_product_for_display(product)
    variant = resolve_variant(product, color_id, size_id)
    if variant is None:
        logger.debug("Product %s: no variant for color=%r size=%r", product.id, color_id, size_id)

    color_value = _display_value(find_color(product, color_id), color_id, variant.color if variant else None)
    size_value = _display_value(find_size(product, size_id), size_id, variant.size if variant else None)
    media = get_media_for_color(product, color_id)

    return CartSelection(
        product_id=product.id,
        variant_id=variant.variant_id if variant else None,
        resolved_price=_resolved_price(product, variant),
        resolved_color_display_value=color_value,
        resolved_size_display_value=size_value,
        in_stock=_in_stock(product, variant, size_value),
        image=media[0] if media else None,
    )


def validate_selection(product: Any, color_id: Any = None, size_id: Any = None) -> list[SelectionIssue]:
    """Commit-time check; an empty list means the selection can go to the cart."""
    product = format_product_for_display(product)
    issues: list[SelectionIssue] = []

    if normalize_id(color_id) is None and get_color_values(product):
        issues.append(SelectionIssue(field="color", message=MISSING_COLOR_MESSAGE))

    if normalize_id(size_id) is None and get_available_sizes_for_color(product, color_id):
        issues.append(SelectionIssue(field="size", message=MISSING_SIZE_MESSAGE))
    return issues
