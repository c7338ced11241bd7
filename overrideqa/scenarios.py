"""Built-in scenario table for the WooCommerce block templates."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from .models import (
    LEGACY_BLOCK_NAME,
    FallbackBlock,
    PublicRoute,
    TemplateScenario,
    ValidationError,
)


def _scenario(
    slug: str,
    title: str,
    block_title: str,
    placeholder: str,
    route: str,
) -> TemplateScenario:
    return TemplateScenario(
        slug=slug,
        title=title,
        expected_fallback=FallbackBlock(
            name=LEGACY_BLOCK_NAME,
            title=block_title,
            template=slug,
            placeholder=placeholder,
        ),
        public_route=PublicRoute.parse(route),
    )


SINGLE_PRODUCT = _scenario(
    "single-product",
    "Single Product",
    "WooCommerce Single Product Block",
    "single-product",
    "product:Woo Single #1",
)
PRODUCT_CATALOG = _scenario(
    "archive-product",
    "Product Catalog",
    "WooCommerce Product Grid Block",
    "archive-product",
    "/?post_type=product",
)
PRODUCTS_BY_CATEGORY = _scenario(
    "taxonomy-product_cat",
    "Products by Category",
    "WooCommerce Product Taxonomy Block",
    "archive-product",
    "/product-category/uncategorized",
)
PRODUCTS_BY_TAG = _scenario(
    "taxonomy-product_tag",
    "Products by Tag",
    "WooCommerce Product Tag Block",
    "archive-product",
    "/product-tag/newest",
)

DEFAULT_SCENARIOS: List[TemplateScenario] = [
    SINGLE_PRODUCT,
    PRODUCT_CATALOG,
    PRODUCTS_BY_CATEGORY,
    PRODUCTS_BY_TAG,
]


def load_scenarios(path: Path | str) -> List[TemplateScenario]:
    """Load a scenario table from a JSON array of scenario objects."""

    source = Path(path)
    try:
        raw = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValidationError({"scenarios": f"invalid JSON: {exc}"}) from exc
    if not isinstance(raw, list):
        raise ValidationError({"scenarios": "scenario file must contain a JSON array"})

    scenarios: List[TemplateScenario] = []
    errors: Dict[str, str] = {}
    seen: set[str] = set()
    for index, item in enumerate(raw):
        if not isinstance(item, dict):
            errors[f"scenarios[{index}]"] = "scenario must be an object"
            continue
        try:
            scenario = TemplateScenario.from_dict(item)
        except ValidationError as exc:
            for key, message in exc.errors.items():
                errors[f"scenarios[{index}].{key}"] = message
            continue
        if scenario.slug in seen:
            errors[f"scenarios[{index}].slug"] = f"duplicate slug {scenario.slug}"
            continue
        seen.add(scenario.slug)
        scenarios.append(scenario)

    if errors:
        raise ValidationError(errors)
    if not scenarios:
        raise ValidationError({"scenarios": "at least one scenario is required"})
    return scenarios


__all__ = [
    "DEFAULT_SCENARIOS",
    "SINGLE_PRODUCT",
    "PRODUCT_CATALOG",
    "PRODUCTS_BY_CATEGORY",
    "PRODUCTS_BY_TAG",
    "load_scenarios",
]
