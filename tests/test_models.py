import pytest

from overrideqa.models import (
    LEGACY_BLOCK_NAME,
    Contributor,
    PublicRoute,
    RenderedContent,
    TemplateListingEntry,
    TemplateScenario,
    ValidationError,
)


WOO = Contributor(raw_id="woocommerce/woocommerce", display_name="WooCommerce")


@pytest.mark.parametrize("value", ["woocommerce/woocommerce", "WooCommerce", "  WooCommerce "])
def test_contributor_accepts_raw_and_parsed_forms(value) -> None:
    assert WOO.matches(value)


@pytest.mark.parametrize("value", ["woocommerce", "Gutenberg", "", None, 42])
def test_contributor_rejects_other_values(value) -> None:
    assert not WOO.matches(value)


def test_public_route_parses_paths_and_lookups() -> None:
    path = PublicRoute.parse("/product-tag/newest")
    assert path.path == "/product-tag/newest"
    assert not path.is_lookup

    lookup = PublicRoute.parse("product: Woo Single #1")
    assert lookup.is_lookup
    assert (lookup.post_type, lookup.post_title) == ("product", "Woo Single #1")
    assert str(lookup) == "product:Woo Single #1"


@pytest.mark.parametrize("value", ["product", "product:", ":title", "relative/path"])
def test_public_route_rejects_malformed_values(value) -> None:
    with pytest.raises(ValueError):
        PublicRoute.parse(value)


def test_scenario_from_dict_defaults_fallback_from_slug() -> None:
    scenario = TemplateScenario.from_dict(
        {
            "slug": "taxonomy-product_cat",
            "title": "Products by Category",
            "expected_fallback": {"attributes": {"placeholder": "archive-product"}},
            "public_route": "/product-category/uncategorized",
        }
    )

    assert scenario.expected_fallback.name == LEGACY_BLOCK_NAME
    assert scenario.expected_fallback.template == "taxonomy-product_cat"
    assert scenario.expected_fallback.placeholder == "archive-product"
    assert scenario.to_dict()["public_route"] == "/product-category/uncategorized"


def test_scenario_from_dict_collects_all_errors() -> None:
    with pytest.raises(ValidationError) as excinfo:
        TemplateScenario.from_dict(
            {
                "slug": "Single Product",
                "title": "  ",
                "expected_fallback": ["not", "an", "object"],
                "public_route": "nowhere",
            }
        )

    errors = excinfo.value.errors
    assert set(errors) == {"slug", "title", "expected_fallback", "public_route"}


def test_scenario_round_trips_through_dict() -> None:
    raw = {
        "slug": "single-product",
        "title": "Single Product",
        "expected_fallback": {
            "name": LEGACY_BLOCK_NAME,
            "attributes": {
                "placeholder": "single-product",
                "template": "single-product",
                "title": "WooCommerce Single Product Block",
            },
        },
        "public_route": "product:Woo Single #1",
    }
    assert TemplateScenario.from_dict(raw).to_dict() == raw


def test_listing_entry_from_row_normalizes_values() -> None:
    entry = TemplateListingEntry.from_row(
        {"templateTitle": " Product Catalog ", "addedBy": "WooCommerce\n", "hasActions": 1}
    )
    assert entry == TemplateListingEntry("Product Catalog", "WooCommerce", True)

    empty = TemplateListingEntry.from_row({})
    assert empty == TemplateListingEntry("", "", False)


def test_rendered_content_matches_paragraph_substrings() -> None:
    content = RenderedContent(markup="", paragraphs=["Intro", "My awesome customization!"])
    assert content.contains_paragraph("My awesome customization")
    assert not content.contains_paragraph("Something else")


@pytest.mark.parametrize("value", ["https://shop.test/x", "http://site.test/?post_type=product"])
def test_public_route_rejects_full_urls(value) -> None:
    with pytest.raises(ValueError) as excinfo:
        PublicRoute.parse(value)
    assert "not a full URL" in str(excinfo.value)


def test_public_route_path_may_carry_url_in_query() -> None:
    assert PublicRoute.parse("/redirect?to=https://x.test").path == "/redirect?to=https://x.test"


def test_scenario_with_full_url_route_fails_validation() -> None:
    with pytest.raises(ValidationError) as excinfo:
        TemplateScenario.from_dict(
            {"slug": "archive-product", "title": "Product Catalog", "public_route": "https://shop.test/x"}
        )
    assert set(excinfo.value.errors) == {"public_route"}
    assert "not a full URL" in excinfo.value.errors["public_route"]
