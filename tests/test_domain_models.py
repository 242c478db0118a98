import pytest

from product_catalog.domain.models import FormDraft, Product, format_price, parse_id, parse_price


@pytest.mark.parametrize(
    "text, expected",
    [
        ("1.50", 1.5),
        ("  2", 2.0),
        (".5", 0.5),
        ("3.25 EUR", 3.25),
        ("1e2", 100.0),
        ("-4", -4.0),
        ("", None),
        ("abc", None),
    ],
)
def test_parse_price_uses_leading_number(text, expected):
    assert parse_price(text) == expected


@pytest.mark.parametrize("text, expected", [("7", 7), (" 12abc", 12), ("3.9", 3), ("", None), ("x7", None)])
def test_parse_id_uses_leading_integer(text, expected):
    assert parse_id(text) == expected


def test_format_price_two_decimals():
    assert format_price(1.5) == "$1.50"
    assert format_price(10) == "$10.00"
    assert format_price(None) == "$-"


def test_product_from_row_ignores_extra_columns():
    row = {"id": "7", "name": "Pen", "price": "1.5", "created_at": "2024-01-01"}
    assert Product.from_row(row) == Product(id=7, name="Pen", price=1.5)
    assert Product.from_row({"id": 8, "name": None, "price": None}) == Product(id=8, name="", price=None)


def test_form_draft_record_is_not_validated():
    assert FormDraft(name="", price="n/a").to_record() == {"name": "", "price": None}
    assert FormDraft(name="Pen", price="1.50").to_record() == {"name": "Pen", "price": 1.5}


def test_parse_price_drops_non_finite_values():
    assert parse_price("1e999") is None
    assert parse_price("-1e999") is None
    assert FormDraft(name="x", price="1e999").to_record() == {"name": "x", "price": None}
