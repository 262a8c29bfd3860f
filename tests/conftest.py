"""Shared product document fixtures for the variant resolution tests."""

import pytest


@pytest.fixture
def legacy_product():
    """Flat legacy document: colors/sizes arrays and color+size variants."""
    return {
        "_id": "p-legacy",
        "name": "Boxy Tee",
        "price": 999,
        "colors": ["White", "Black"],
        "sizes": ["S", "M"],
        "variants": [
            {"_id": "lv-white-s", "color": "White", "size": "S", "images": ["w1.jpg"], "stock": 4},
            {"_id": "lv-black-m", "color": "Black", "size": "M", "images": ["b1.jpg"], "stock": 0},
        ],
    }


@pytest.fixture
def structured_product():
    """Structured document: option definitions, optionValueIds and color media."""
    return {
        "id": "p-structured",
        "title": "Oversized Hoodie",
        "basePrice": 2499,
        "discountPrice": 1999,
        "usesNewVariantSystem": True,
        "options": [
            {
                "id": "opt-color",
                "name": "Color",
                "values": [
                    {"id": "c1", "value": "Sand", "hexCode": "#d8c3a5"},
                    {"id": "c2", "value": "Olive", "hexCode": "#556b2f", "swatchImageUrl": "olive.png"},
                ],
            },
            {
                "id": "opt-size",
                "name": "Size",
                "values": [
                    {"id": "s1", "value": "S"},
                    {"id": "s2", "value": "M"},
                    {"id": "s3", "value": "L"},
                ],
            },
        ],
        "variants": [
            {"_id": "v1", "optionValueIds": ["c1", "s1"], "price": 2599, "inventory": 3},
            {"_id": "v2", "optionValueIds": [{"id": "c1"}, {"id": "s3"}], "inventory": 0},
            {"_id": "v3", "optionValueIds": ["c2", "s2"], "inventory": 7},
        ],
        "media": [
            {"url": "sand-back.jpg", "colorOptionValueId": {"id": "c1"}, "sortOrder": 2},
            {"url": "sand-front.jpg", "colorOptionValueId": "c1", "sortOrder": 1},
            {"url": "olive-front.jpg", "colorOptionValueId": "c2", "sortOrder": 0},
        ],
        "images": ["hoodie.jpg"],
    }


@pytest.fixture
def single_sku_product():
    """No options, no variants: a one-size, colorless accessory."""
    return {"id": "p-cap", "title": "Logo Cap", "price": 499, "image": "cap.jpg"}
