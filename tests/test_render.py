from __future__ import annotations

from product_catalog.ui.component import NOT_FOUND_MESSAGE
from product_catalog.ui.render import render_page


def _snapshot(**overrides):
    snap = {
        "products": [],
        "form": {"name": "", "price": ""},
        "search_id": "",
        "search_message": "",
        "mounted": True,
    }
    snap.update(overrides)
    return snap


def test_rows_show_price_and_delete_action() -> None:
    page = render_page(_snapshot(products=[
        {"id": 7, "name": "Pen", "price": 1.5},
        {"id": 9, "name": "Gift card", "price": None},
    ]))

    assert "<span>Pen</span>" in page
    assert "$1.50" in page
    assert "$-" in page
    assert 'action="/actions/delete/7"' in page
    assert 'action="/actions/delete/9"' in page


def test_user_text_is_escaped_everywhere() -> None:
    page = render_page(_snapshot(
        products=[{"id": 1, "name": "<b>Mug</b>", "price": 2}],
        form={"name": '"><script>', "price": "1&2"},
        search_id="<7>",
    ))

    assert "<b>Mug</b>" not in page
    assert "&lt;b&gt;Mug&lt;/b&gt;" in page
    assert "<script>" not in page
    assert 'value="&#34;&gt;&lt;script&gt;"' in page
    assert 'value="1&amp;2"' in page
    assert 'value="&lt;7&gt;"' in page


def test_not_found_message_only_when_set() -> None:
    assert NOT_FOUND_MESSAGE not in render_page(_snapshot())
    assert NOT_FOUND_MESSAGE in render_page(_snapshot(search_message=NOT_FOUND_MESSAGE))
