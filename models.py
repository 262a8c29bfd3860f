import math
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from identifiers import normalize_id

# Option definition names that select each dimension (compared lowercased)
COLOR_OPTION_NAMES = frozenset({"color", "colour"})
SIZE_OPTION_NAMES = frozenset({"size"})

# Identifiers arrive as strings, {"id"/"value"} objects or object ids.
# Compare them through identifiers.normalize_id, never directly.
Identifier = Any


def _optional_str(v: Any) -> str | None:
    if v is None:
        return None
    if isinstance(v, str):
        return v
    return normalize_id(v)


def _optional_float(v: Any) -> float | None:
    if v is None or v == "" or isinstance(v, bool):
        return None
    try:
        num = float(v)
    except (TypeError, ValueError, OverflowError):
        return None
    # NaN and infinities are treated as missing
    return num if math.isfinite(num) else None


def _optional_int(v: Any) -> int | None:
    num = _optional_float(v)
    return int(num) if num is not None else None


def _url_of(item: Any) -> str | None:
    """Image entries are plain URLs or objects carrying url/src."""
    if isinstance(item, str):
        return item or None
    if isinstance(item, Mapping):
        for key in ("url", "src"):
            val = item.get(key)
            if isinstance(val, str) and val:
                return val
    return None


def _url_list(v: Any) -> list[str]:
    if not isinstance(v, (list, tuple)):
        return []
    return [u for u in (_url_of(item) for item in v) if u]


class _Document(BaseModel):
    """Base for models validated straight from catalog documents."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class OptionValue(_Document):
    """One selectable value of an option (e.g. Color=Black)."""

    id: Identifier = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    value: str | None = None  # display label
    hex_code: str | None = Field(default=None, validation_alias=AliasChoices("hex_code", "hexCode"))
    swatch_image_url: str | None = Field(
        default=None, validation_alias=AliasChoices("swatch_image_url", "swatchImageUrl")
    )

    @field_validator("value", "hex_code", "swatch_image_url", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> str | None:
        return _optional_str(v)


class OptionDefinition(_Document):
    """A product dimension ("Color", "Size") with its possible values."""

    id: Identifier = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    values: list[OptionValue] = []

    @field_validator("name", mode="before")
    @classmethod
    def coerce_name(cls, v: Any) -> str:
        return _optional_str(v) or ""

    @field_validator("values", mode="before")
    @classmethod
    def coerce_values(cls, v: Any) -> list:
        if not isinstance(v, (list, tuple)):
            return []
        values = []
        for item in v:
            # Bare labels double as their own id
            if isinstance(item, (str, int, float)) and not isinstance(item, bool):
                values.append({"id": str(item), "value": str(item)})
            elif isinstance(item, (Mapping, BaseModel)):
                values.append(item)
        return values

    def is_named(self, names: frozenset[str]) -> bool:
        return self.name.strip().lower() in names


class Variant(_Document):
    """A purchasable SKU: structured option value ids and/or legacy color/size."""

    id: Identifier = Field(default=None, validation_alias=AliasChoices("id", "_id", "variantId"))
    option_value_ids: list[Identifier] = Field(
        default=[], validation_alias=AliasChoices("option_value_ids", "optionValueIds")
    )
    # Legacy display strings; legacy variants never carry option value ids
    color: str | None = None
    size: str | None = None
    price: float | None = None
    inventory: int | None = Field(default=None, validation_alias=AliasChoices("inventory", "stock"))
    images: list[str] = []
    sku: str | None = None
    is_default: bool = Field(default=False, validation_alias=AliasChoices("is_default", "isDefault"))

    @field_validator("option_value_ids", mode="before")
    @classmethod
    def coerce_option_value_ids(cls, v: Any) -> list:
        if not isinstance(v, (list, tuple)):
            return []
        return [item for item in v if item is not None and item != ""]

    @field_validator("color", "size", "sku", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> str | None:
        return _optional_str(v) or None

    @field_validator("price", mode="before")
    @classmethod
    def coerce_price(cls, v: Any) -> float | None:
        return _optional_float(v)

    @field_validator("inventory", mode="before")
    @classmethod
    def coerce_inventory(cls, v: Any) -> int | None:
        return _optional_int(v)

    @field_validator("images", mode="before")
    @classmethod
    def coerce_images(cls, v: Any) -> list[str]:
        return _url_list(v)

    @field_validator("is_default", mode="before")
    @classmethod
    def coerce_is_default(cls, v: Any) -> bool:
        return v is True

    @property
    def variant_id(self) -> str | None:
        return normalize_id(self.id)


class MediaAsset(_Document):
    """An image attached to a color option value."""

    url: str | None = Field(default=None, validation_alias=AliasChoices("url", "src"))
    color_option_value_id: Identifier = Field(
        default=None, validation_alias=AliasChoices("color_option_value_id", "colorOptionValueId")
    )
    sort_order: float = Field(default=0, validation_alias=AliasChoices("sort_order", "sortOrder"))
    alt_text: str | None = Field(default=None, validation_alias=AliasChoices("alt_text", "altText"))

    @field_validator("url", "alt_text", mode="before")
    @classmethod
    def coerce_str(cls, v: Any) -> str | None:
        return _optional_str(v) or None

    @field_validator("sort_order", mode="before")
    @classmethod
    def coerce_sort_order(cls, v: Any) -> float:
        return _optional_float(v) or 0


class CanonicalProduct(BaseModel):
    """One display model carrying the structured and legacy schemas side by side.

    Built by formatter.format_product_for_display. Lists default to [] and
    maps to {} so consumers never guard against missing fields.
    """

    id: str | None = None
    title: str = ""
    description: str | None = None
    base_price: float = 0
    discount_price: float | None = None
    uses_new_variant_system: bool = False
    # Structured schema
    options: list[OptionDefinition] = []
    variants: list[Variant] = []
    media: list[MediaAsset] = []
    # Legacy schema; blank colors/sizes entries are kept as "" placeholders
    colors: list[str] = []
    sizes: list[str] = []
    images: list[str] = []
    images_by_color: dict[str, list[str]] = {}
    main_image: str | None = None
    inventory: dict[str, int] = {}  # legacy per-size stock counts
    # Passthrough
    category: Any = None
    brand: Any = None
    rating: float | None = None


class SelectableValue(BaseModel):
    """Uniform Color/Size entry shown to the shopper, whatever the source schema."""

    id: str
    value: str | None = None
    hex_code: str | None = None
    swatch_image_url: str | None = None
    label: str | None = None


class Selection(BaseModel):
    """The caller's current (color, size) choice."""

    model_config = ConfigDict(populate_by_name=True)

    color_id: Identifier = Field(default=None, validation_alias=AliasChoices("color_id", "colorId"))
    size_id: Identifier = Field(default=None, validation_alias=AliasChoices("size_id", "sizeId"))
