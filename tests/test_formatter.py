"""Product formatter: canonical projection of legacy, structured and mixed documents."""

import copy
import logging

import pytest

from formatter import format_product_for_display, uses_new_variant_system
from models import CanonicalProduct


class TestUsesNewVariantSystem:
    def test_legacy_document(self, legacy_product):
        assert uses_new_variant_system(legacy_product) is False

    def test_structured_document(self, structured_product):
        assert uses_new_variant_system(structured_product) is True

    @pytest.mark.parametrize(
        "raw",
        [
            {"usesNewVariantSystem": True},
            {"options": [{"name": "Color", "values": []}]},
            {"media": [{"url": "a.jpg"}]},
        ],
    )
    def test_any_signal_sets_flag(self, raw):
        assert uses_new_variant_system(raw) is True

    def test_empty_structured_lists_do_not_count(self):
        assert uses_new_variant_system({"options": [], "media": [], "usesNewVariantSystem": False}) is False


class TestFormatProductForDisplay:
    def test_legacy_fields(self, legacy_product):
        product = format_product_for_display(legacy_product)

        assert product.id == "p-legacy"
        assert product.title == "Boxy Tee"
        assert product.base_price == 999
        assert product.uses_new_variant_system is False
        assert product.colors == ["White", "Black"]
        assert product.sizes == ["S", "M"]
        assert product.options == []
        assert product.media == []
        assert [v.color for v in product.variants] == ["White", "Black"]
        assert product.variants[0].inventory == 4  # "stock" alias
        assert product.variants[0].variant_id == "lv-white-s"

    def test_structured_fields(self, structured_product):
        product = format_product_for_display(structured_product)

        assert product.id == "p-structured"
        assert product.base_price == 2499
        assert product.discount_price == 1999
        assert product.uses_new_variant_system is True
        assert [o.name for o in product.options] == ["Color", "Size"]
        assert product.options[0].values[1].swatch_image_url == "olive.png"
        assert product.options[0].values[0].hex_code == "#d8c3a5"
        assert [m.sort_order for m in product.media] == [2, 1, 0]
        assert product.variants[1].option_value_ids == [{"id": "c1"}, {"id": "s3"}]

    def test_empty_document_gets_defaults(self):
        product = format_product_for_display({})

        assert product.id is None
        assert product.title == ""
        assert product.base_price == 0
        assert product.discount_price is None
        assert product.options == []
        assert product.variants == []
        assert product.media == []
        assert product.colors == []
        assert product.sizes == []
        assert product.images == []
        assert product.images_by_color == {}
        assert product.inventory == {}
        assert product.main_image is None

    def test_null_fields_get_defaults(self):
        product = format_product_for_display(
            {"options": None, "variants": None, "media": None, "colors": None, "imagesByColor": None}
        )
        assert product.options == []
        assert product.variants == []
        assert product.media == []
        assert product.colors == []
        assert product.images_by_color == {}

    def test_title_prefers_title_over_name(self):
        assert format_product_for_display({"title": "A", "name": "B"}).title == "A"
        assert format_product_for_display({"name": "B"}).title == "B"

    def test_base_price_prefers_base_price_over_price(self):
        assert format_product_for_display({"basePrice": 10, "price": 20}).base_price == 10
        assert format_product_for_display({"price": "20"}).base_price == 20

    def test_main_image_sources(self):
        assert format_product_for_display({"mainImage": "m.jpg", "image": "i.jpg"}).main_image == "m.jpg"
        assert format_product_for_display({"image": "i.jpg"}).main_image == "i.jpg"
        assert format_product_for_display({"images": ["a.jpg", "b.jpg"]}).main_image == "a.jpg"

    def test_images_accept_url_objects(self):
        product = format_product_for_display({"images": ["a.jpg", {"url": "b.jpg"}, {"src": "c.jpg"}, None]})
        assert product.images == ["a.jpg", "b.jpg", "c.jpg"]

    def test_images_by_color_single_url_value(self):
        product = format_product_for_display({"imagesByColor": {"Red": "r.jpg", "Blue": ["b1.jpg", "b2.jpg"]}})
        assert product.images_by_color == {"Red": ["r.jpg"], "Blue": ["b1.jpg", "b2.jpg"]}

    def test_legacy_variant_color_object(self):
        product = format_product_for_display({"variants": [{"color": {"value": "Red"}, "size": "S"}]})
        assert product.variants[0].color == "Red"

    def test_option_values_given_as_labels(self):
        product = format_product_for_display({"options": [{"name": "Size", "values": ["S", "M"]}]})
        assert [(v.id, v.value) for v in product.options[0].values] == [("S", "S"), ("M", "M")]

    def test_malformed_entries_are_dropped(self, caplog):
        with caplog.at_level(logging.WARNING, logger="formatter"):
            product = format_product_for_display(
                {"id": "p1", "variants": ["junk", None, {"color": "Red", "size": "S"}], "media": 5}
            )

        assert len(product.variants) == 1
        assert product.variants[0].color == "Red"
        assert product.media == []
        assert "dropping variants[0]" in caplog.text

    def test_unparseable_numbers_degrade(self):
        product = format_product_for_display(
            {"price": "n/a", "variants": [{"color": "Red", "size": "S", "price": "abc", "stock": "lots"}]}
        )
        assert product.base_price == 0
        assert product.variants[0].price is None
        assert product.variants[0].inventory is None

    def test_non_finite_numbers_degrade(self):
        product = format_product_for_display(
            {
                "basePrice": float("nan"),
                "discountPrice": "Infinity",
                "inventory": {"S": float("nan"), "M": "1e400", "L": 2},
                "variants": [{"color": "Red", "size": "S", "price": float("inf"), "stock": float("-inf")}],
                "media": [{"url": "a.jpg", "sortOrder": float("nan")}],
            }
        )
        assert product.base_price == 0
        assert product.discount_price is None
        assert product.inventory == {"L": 2}
        assert product.variants[0].price is None
        assert product.variants[0].inventory is None
        assert product.media[0].sort_order == 0

    def test_blank_legacy_labels_keep_their_slot(self):
        product = format_product_for_display({"colors": ["", "Red", None], "sizes": [" ", 8]})
        assert product.colors == ["", "Red", ""]
        assert product.sizes == [" ", "8"]

    def test_input_is_not_mutated(self, structured_product):
        before = copy.deepcopy(structured_product)
        format_product_for_display(structured_product)
        assert structured_product == before

    def test_canonical_product_passes_through(self, legacy_product):
        product = format_product_for_display(legacy_product)
        assert format_product_for_display(product) is product
        assert isinstance(product, CanonicalProduct)

    @pytest.mark.parametrize("raw", [None, "product", 42, ["a"]])
    def test_non_document_is_a_contract_violation(self, raw):
        with pytest.raises(TypeError):
            format_product_for_display(raw)
