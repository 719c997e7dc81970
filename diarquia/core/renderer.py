from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATES_DIR)),
    autoescape=select_autoescape(["html", "xml"]),
    keep_trailing_newline=False,
)


def render_text(template_name: str, **context: Any) -> str:
    template = _env.get_template(template_name)
    return template.render(**context).strip()
