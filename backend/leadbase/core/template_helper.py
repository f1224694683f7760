from pathlib import Path

import jinja2
from core.logging import logger

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"

_environment = jinja2.Environment(
    loader=jinja2.FileSystemLoader(searchpath=str(TEMPLATE_DIR)),
    undefined=jinja2.StrictUndefined,
)


def render_template(name: str, **context) -> str:
    """Render the template `name` (relative to the templates directory)."""
    try:
        rendered = _environment.get_template(name).render(**context)
        logger.debug("Rendered template {}", name)
        return rendered
    except jinja2.TemplateError:
        logger.exception("Failed to render template {}", name)
        raise
