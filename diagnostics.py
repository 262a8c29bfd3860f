"""
Diagnostic: run catalog product documents through the variant resolvers.
Reports schema family, counts and data inconsistencies for each product.
"""

import logging
import sys
from collections import Counter
from pathlib import Path
from typing import Any

import orjson

from formatter import format_product_for_display
from identifiers import ids_equal, normalize_id
from variants import (
    get_color_values,
    get_default_color,
    get_default_size_for_color,
    get_size_values,
)

logger = logging.getLogger(__name__)

DATA_FILE = Path(__file__).parent / "data" / "products.json"


def _schema_family(raw: dict) -> str:
    structured = bool(raw.get("options") or raw.get("media")) or any(
        isinstance(v, dict) and v.get("optionValueIds") for v in raw.get("variants") or []
    )
    legacy = bool(raw.get("colors") or raw.get("sizes") or raw.get("imagesByColor")) or any(
        isinstance(v, dict) and (v.get("color") or v.get("size")) for v in raw.get("variants") or []
    )
    if structured and legacy:
        return "mixed"
    if structured:
        return "structured"
    if legacy:
        return "legacy"
    return "single-sku"


def diagnose_product(raw: dict) -> dict:
    """Summarize one product document and flag data the resolvers have to paper over."""
    product = format_product_for_display(raw)
    colors = get_color_values(product)
    sizes = get_size_values(product)

    # Colors nothing references: every size gets offered for them
    unreferenced = []
    if product.variants:
        for color in colors:
            referenced = any(
                any(ids_equal(color.id, i) for i in v.option_value_ids) or v.color == color.value
                for v in product.variants
            )
            if not referenced:
                unreferenced.append(color.value or color.id)

    # Same (color, size) pair on more than one variant; only the first is ever resolved
    pairs: Counter = Counter()
    for v in product.variants:
        if v.option_value_ids:
            pairs[tuple(sorted(normalize_id(i) for i in v.option_value_ids))] += 1
        elif v.color or v.size:
            pairs[(v.color, v.size)] += 1
    duplicates = [list(pair) for pair, count in pairs.items() if count > 1]

    known_color_ids = {c.id for c in colors}
    orphan_media = [
        m.url
        for m in product.media
        if normalize_id(m.color_option_value_id) is not None
        and normalize_id(m.color_option_value_id) not in known_color_ids
    ]

    default_color = get_default_color(product)
    default_size = get_default_size_for_color(product, default_color.id if default_color else None)

    return {
        "id": product.id,
        "title": product.title,
        "schema": _schema_family(raw),
        "uses_new_variant_system": product.uses_new_variant_system,
        "counts": {
            "colors": len(colors),
            "sizes": len(sizes),
            "variants": len(product.variants),
            "media": len(product.media),
            "images": len(product.images),
        },
        "unreferenced_colors": unreferenced,
        "duplicate_variants": duplicates,
        "orphan_media": orphan_media,
        "default_color": default_color.value if default_color else None,
        "default_size": default_size.value if default_size else None,
    }


def load_products(path: Path) -> list[Any]:
    """Read a JSON file holding one product document or a list of them."""
    data = orjson.loads(path.read_bytes())
    if isinstance(data, dict):
        return [data]
    return data if isinstance(data, list) else []


def diagnose_file(path: Path) -> list[dict]:
    reports = []
    for idx, raw in enumerate(load_products(path)):
        try:
            reports.append(diagnose_product(raw))
        except TypeError as e:
            logger.error(f"Entry {idx} in {path.name} is not a product document: {e}")
    return reports


def main(argv: list[str] | None = None) -> None:
    args = sys.argv[1:] if argv is None else argv
    path = Path(args[0]) if args else DATA_FILE
    reports = diagnose_file(path)
    print(f"Diagnosing {len(reports)} products from {path}\n")

    for report in reports:
        print(f"{'=' * 70}")
        print(f"  {report['title'] or '(untitled)'}  [{report['id']}]")
        print(f"{'=' * 70}")

        c = report["counts"]
        print(
            f"  Schema: {report['schema']} | {c['colors']} colors | {c['sizes']} sizes | "
            f"{c['variants']} variants | {c['media']} media | {c['images']} images"
        )
        print(f"  Default: color={report['default_color']} size={report['default_size']}")

        if report["unreferenced_colors"]:
            print(f"  Colors with no variants (all sizes offered): {report['unreferenced_colors']}")
        if report["duplicate_variants"]:
            print(f"  Duplicate variants: {report['duplicate_variants']}")
        if report["orphan_media"]:
            print(f"  Media for unknown colors: {len(report['orphan_media'])}")
        print()

    # Summary table
    print(f"\n{'=' * 70}")
    print("SUMMARY")
    print(f"{'=' * 70}")
    families = Counter(r["schema"] for r in reports)
    for family, count in families.most_common():
        print(f"  {family:<12} {count}")
    flagged = sum(1 for r in reports if r["unreferenced_colors"] or r["duplicate_variants"] or r["orphan_media"])
    print(f"  Products with data issues: {flagged}/{len(reports)}")


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    main()
