import pytest

from errors import ValidationFailed
from validation import (
    ensure_valid,
    normalize_hex_code,
    parse_count,
    parse_number,
    validate_gallery_selection,
    validate_product,
)


def test_valid_product_has_no_violations(make_product):
    assert validate_product(make_product()) == []


def test_numeric_text_is_normalized(make_product):
    product = make_product(
        price="19.99",
        dimensions={"length": "10", "width": "20.5", "height": 30},
        colors=[{
            "color_name": "Red",
            "hex_code": "ff0000",
            "sizes_inventory": {"L": {"inventory": "5", "price": "18"}, "S": {"inventory": 2, "price": 17}},
        }],
    )
    valid = ensure_valid(product)
    assert valid.price == 19.99
    assert isinstance(valid.price, float)
    assert valid.dimensions.length == 10.0
    assert valid.dimensions.width == 20.5
    assert valid.colors[0].hex_code == "ff0000"
    assert valid.colors[0].sizes_inventory["L"].inventory == 5
    assert valid.colors[0].sizes_inventory["L"].price == 18.0
    assert list(valid.colors[0].sizes_inventory) == ["S", "L"]


@pytest.mark.parametrize("price", [0, -1, "0", "-5.5"])
def test_price_must_be_positive(make_product, price):
    violations = validate_product(make_product(price=price))
    assert [v.path for v in violations] == ["price"]


def test_price_must_parse(make_product):
    violations = validate_product(make_product(price="cheap"))
    assert violations[0].path == "price"
    assert violations[0].message == "must be a number"


def test_dimensions_must_be_positive_numbers(make_product):
    violations = validate_product(make_product(dimensions={"length": "abc", "width": 0, "height": 3}))
    assert [v.path for v in violations] == ["dimensions.length", "dimensions.width"]


def test_placeholders_allowed_in_draft_only(make_product):
    product = make_product(
        price="",
        colors=[{"color_name": "Red", "sizes_inventory": {"M": {"inventory": "", "price": ""}}}],
    )
    assert validate_product(product, final=False) == []
    paths = [v.path for v in validate_product(product, final=True)]
    assert paths == [
        "price",
        "colors[0].sizes_inventory.M.inventory",
        "colors[0].sizes_inventory.M.price",
    ]


def test_final_submission_needs_a_variant(make_product):
    product = make_product(colors=[])
    assert validate_product(product, final=False) == []
    assert [v.path for v in validate_product(product)] == ["colors"]


@pytest.mark.parametrize("inventory, message", [
    (-1, "must not be negative"),
    ("-3", "must not be negative"),
    ("lots", "must be a whole number"),
    ("2.5", "must be a whole number"),
])
def test_inventory_rules(make_product, inventory, message):
    product = make_product(colors=[{"sizes_inventory": {"S": {"inventory": inventory, "price": 10}}}])
    violations = validate_product(product)
    assert len(violations) == 1
    assert violations[0].path == "colors[0].sizes_inventory.S.inventory"
    assert violations[0].message == message


def test_size_price_must_be_positive(make_product):
    product = make_product(colors=[{"sizes_inventory": {"S": {"inventory": 0, "price": 0}}}])
    assert [v.path for v in validate_product(product)] == ["colors[0].sizes_inventory.S.price"]


def test_bad_hex_code(make_product):
    product = make_product(colors=[{"color_name": "Red", "hex_code": "red"}])
    assert [v.path for v in validate_product(product)] == ["colors[0].hex_code"]


def test_ensure_valid_reports_every_violation(make_product):
    with pytest.raises(ValidationFailed) as exc:
        ensure_valid(make_product(price=-1, weight="heavy", colors=[]))
    assert exc.value.paths == ["price", "weight", "colors"]


def test_normalize_hex_code():
    assert normalize_hex_code(" #abc ") == "#AABBCC"
    assert normalize_hex_code("00ff7f") == "#00FF7F"
    assert normalize_hex_code("") is None
    with pytest.raises(ValueError):
        normalize_hex_code("#12345")


def test_parse_helpers():
    assert parse_number(" 19.99 ") == 19.99
    assert parse_count("30") == 30
    assert parse_count(4.0) == 4
    with pytest.raises(ValueError):
        parse_number(True)
    with pytest.raises(ValueError):
        parse_number("nan")


def test_gallery_selection_bounds():
    urls = [f"https://cdn.example.com/{i}.jpg" for i in range(6)]
    assert validate_gallery_selection(urls[:3]) == urls[:3]
    assert validate_gallery_selection(urls[:5]) == urls[:5]
    with pytest.raises(ValidationFailed):
        validate_gallery_selection(urls[:2])
    with pytest.raises(ValidationFailed):
        validate_gallery_selection(urls)
    with pytest.raises(ValidationFailed):
        validate_gallery_selection([urls[0], urls[0], urls[1]])
