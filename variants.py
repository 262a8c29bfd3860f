"""
Variant resolution: options, media, size availability, variant matching, defaults.

Every function accepts a raw product document or a CanonicalProduct and
tries the structured schema (options / optionValueIds / media) before the
legacy one (colors / sizes / color+size fields / imagesByColor). Data
problems never raise: missing lists resolve to [], unmatched selections to
None. Only a missing product (None) raises, via the formatter.
"""

import logging
from collections.abc import Mapping
from typing import Any, NamedTuple

from pydantic import BaseModel

from formatter import format_product_for_display
from identifiers import normalize_id
from models import (
    COLOR_OPTION_NAMES,
    SIZE_OPTION_NAMES,
    CanonicalProduct,
    OptionDefinition,
    SelectableValue,
    Selection,
    Variant,
)

logger = logging.getLogger(__name__)

_SELECTION_KEYS = ("colorId", "color_id", "sizeId", "size_id")


class _Resolved(NamedTuple):
    """A selector matched against the product's option list.

    ids: canonical forms compared against optionValueIds / media ids.
    values: display strings compared against legacy fields, most specific first.
    """

    ids: frozenset[str]
    values: tuple[str, ...]
    match: SelectableValue | None


# =====================================================================
# Option Extraction
# =====================================================================


def _find_option(product: CanonicalProduct, names: frozenset[str]) -> OptionDefinition | None:
    for option in product.options:
        if option.is_named(names):
            return option
    return None


def _option_values(option: OptionDefinition) -> list[SelectableValue]:
    values = []
    for val in option.values:
        key = normalize_id(val.id) or val.value
        if key is None:
            logger.debug("Skipping %s option value with neither id nor value", option.name)
            continue
        values.append(
            SelectableValue(
                id=key,
                value=val.value,
                hex_code=val.hex_code,
                swatch_image_url=val.swatch_image_url,
                label=val.value,
            )
        )
    return values


def _legacy_values(labels: list[str], prefix: str) -> list[SelectableValue]:
    # Ids follow the raw array position, so blank slots are skipped but still counted
    return [
        SelectableValue(id=f"{prefix}-{idx}", value=label, label=label)
        for idx, label in enumerate(labels)
        if label
    ]


def _color_values(product: CanonicalProduct) -> list[SelectableValue]:
    option = _find_option(product, COLOR_OPTION_NAMES)
    if option is not None:
        return _option_values(option)
    return _legacy_values(product.colors, "color")


def _size_values(product: CanonicalProduct) -> list[SelectableValue]:
    option = _find_option(product, SIZE_OPTION_NAMES)
    if option is not None:
        return _option_values(option)
    return _legacy_values(product.sizes, "size")


def get_color_option(product: Any) -> OptionDefinition | None:
    """The structured Color option definition, if the product has one."""
    return _find_option(format_product_for_display(product), COLOR_OPTION_NAMES)


def get_size_option(product: Any) -> OptionDefinition | None:
    """The structured Size option definition, if the product has one."""
    return _find_option(format_product_for_display(product), SIZE_OPTION_NAMES)


def get_color_values(product: Any) -> list[SelectableValue]:
    """All selectable colors. Empty list means a single, colorless product."""
    return _color_values(format_product_for_display(product))


def get_size_values(product: Any) -> list[SelectableValue]:
    """All selectable sizes, regardless of color."""
    return _size_values(format_product_for_display(product))


# =====================================================================
# Selector Resolution
# =====================================================================


def _selector_id(selector: Any) -> Any:
    """Explicit id carried by an object selector (a SelectableValue, {"id": ...})."""
    if isinstance(selector, str):
        return None
    if isinstance(selector, Mapping):
        return selector.get("id", selector.get("_id"))
    if isinstance(selector, BaseModel):
        return getattr(selector, "id", None)
    return None


def _resolve(values: list[SelectableValue], selector: Any) -> _Resolved | None:
    """Match a selector (id, display value or id-bearing object) against an option list.

    Unknown selectors still resolve to themselves so raw ids can match
    variants or media the option list does not describe.
    """
    key = normalize_id(selector)
    if key is None:
        return None

    explicit_id = normalize_id(_selector_id(selector))
    candidates = [c for c in (explicit_id, key) if c is not None]

    match = None
    for cand in candidates:
        match = next((v for v in values if v.id == cand), None) or next(
            (v for v in values if v.value == cand), None
        )
        if match is not None:
            break

    ids = set(candidates)
    display: list[str] = []
    if match is not None:
        ids.add(match.id)
        if match.value is not None:
            display.append(match.value)
    for cand in candidates:
        if cand not in display:
            display.append(cand)
    return _Resolved(ids=frozenset(ids), values=tuple(display), match=match)


def _variant_has(variant: Variant, selected: _Resolved, legacy_field: str) -> bool:
    """Does the variant reference the selection, by option value id or legacy display string?"""
    if any(normalize_id(i) in selected.ids for i in variant.option_value_ids):
        return True
    legacy = getattr(variant, legacy_field)
    return legacy is not None and legacy in selected.values


def find_color(product: Any, color_id: Any) -> SelectableValue | None:
    """The color entry a selector refers to, or None when it matches no listed color."""
    product = format_product_for_display(product)
    resolved = _resolve(_color_values(product), color_id)
    return resolved.match if resolved else None


def find_size(product: Any, size_id: Any) -> SelectableValue | None:
    """The size entry a selector refers to, or None when it matches no listed size."""
    product = format_product_for_display(product)
    resolved = _resolve(_size_values(product), size_id)
    return resolved.match if resolved else None


# =====================================================================
# Media Resolution
# =====================================================================


def get_media_for_color(product: Any, color_id: Any = None) -> list[str]:
    """Ordered image URLs for a color.

    Precedence, first non-empty wins:
      1. imagesByColor[display value]
      2. media assets for the color id, stable-sorted by sortOrder
      3. images of the first variant for the color that has any
      4. product images
      5. the single legacy main image
    A missing color skips straight to 4.
    """
    product = format_product_for_display(product)
    color = _resolve(_color_values(product), color_id)

    if color is not None:
        for key in color.values:
            urls = product.images_by_color.get(key)
            if urls:
                return list(urls)

        # sorted() is stable, so authoring order breaks sortOrder ties
        assets = [
            m for m in product.media if m.url and normalize_id(m.color_option_value_id) in color.ids
        ]
        if assets:
            return [m.url for m in sorted(assets, key=lambda m: m.sort_order)]

        for variant in product.variants:
            if variant.images and _variant_has(variant, color, "color"):
                return list(variant.images)

        logger.debug("Product %s: no color-specific media for %r, using product images", product.id, color_id)

    if product.images:
        return list(product.images)
    if product.main_image:
        return [product.main_image]
    return []


# =====================================================================
# Size Availability
# =====================================================================


def _available_sizes(product: CanonicalProduct, color_id: Any) -> list[SelectableValue]:
    sizes = _size_values(product)
    if not product.variants:
        return sizes

    color = _resolve(_color_values(product), color_id)
    color_variants = [v for v in product.variants if color is not None and _variant_has(v, color, "color")]
    if not color_variants:
        # Nothing references this color: every size stays selectable
        logger.debug("Product %s: no variants for color %r, offering all sizes", product.id, color_id)
        return sizes

    size_refs: set[str] = set()
    for variant in color_variants:
        size_refs.update(normalize_id(i) for i in variant.option_value_ids)
        if variant.size:
            size_refs.add(variant.size)

    return [s for s in sizes if s.id in size_refs or (s.value is not None and s.value in size_refs)]


def get_available_sizes_for_color(product: Any, color_id: Any = None) -> list[SelectableValue]:
    """Sizes that have a variant in the given color, in size-list order."""
    return _available_sizes(format_product_for_display(product), color_id)


# =====================================================================
# Variant Matching
# =====================================================================


def _unpack_selection(selection: Any) -> tuple[Any, Any] | None:
    if isinstance(selection, Selection):
        return selection.color_id, selection.size_id
    if isinstance(selection, Mapping) and any(k in selection for k in _SELECTION_KEYS):
        parsed = Selection.model_validate(dict(selection))
        return parsed.color_id, parsed.size_id
    return None


def resolve_variant(product: Any, color_id: Any = None, size_id: Any = None) -> Variant | None:
    """The first variant matching both the color and the size, or None.

    Accepts (product, color_id, size_id) or (product, {"colorId": ..., "sizeId": ...}).
    None means the selection is incomplete or matches nothing.
    """
    product = format_product_for_display(product)
    if size_id is None:
        unpacked = _unpack_selection(color_id)
        if unpacked is not None:
            color_id, size_id = unpacked

    if not product.variants:
        return None

    color = _resolve(_color_values(product), color_id)
    size = _resolve(_size_values(product), size_id)
    if color is None or size is None:
        return None

    for variant in product.variants:
        if variant.option_value_ids:
            ids = {normalize_id(i) for i in variant.option_value_ids}
            if ids & color.ids and ids & size.ids:
                return variant
        if variant.color and variant.size and variant.color in color.values and variant.size in size.values:
            return variant

    return None


# =====================================================================
# Defaults
# =====================================================================


def get_default_color(product: Any) -> SelectableValue | None:
    """First color in authoring order."""
    colors = _color_values(format_product_for_display(product))
    return colors[0] if colors else None


def get_default_size_for_color(product: Any, color_id: Any = None) -> SelectableValue | None:
    """First size available for the color."""
    sizes = _available_sizes(format_product_for_display(product), color_id)
    return sizes[0] if sizes else None
