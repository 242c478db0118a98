from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..domain.models import format_price

# Resolve template directory relative to this file
TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"
env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)
env.filters["price"] = format_price


def render_page(snapshot: Dict[str, Any]) -> str:
    """Render the product screen from a component snapshot."""
    template = env.get_template("product_list.html")
    return template.render(
        products=snapshot["products"],
        form=snapshot["form"],
        search_id=snapshot["search_id"],
        search_message=snapshot.get("search_message") or "",
    )
