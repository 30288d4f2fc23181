from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import ChoiceLoader, Environment, FileSystemLoader
from markupsafe import Markup

# Shared templates (fallbacks, page shell)
TEMPLATE_DIR = Path(__file__).parent / "templates"


@lru_cache()
def get_jinja_env(template_dir: str = str(TEMPLATE_DIR)) -> Environment:
    """Jinja2 environment for a template directory, falling back to the shared one."""
    loaders = [FileSystemLoader(template_dir)]
    if template_dir != str(TEMPLATE_DIR):
        loaders.append(FileSystemLoader(str(TEMPLATE_DIR)))
    return Environment(
        loader=ChoiceLoader(loaders),
        autoescape=True,
    )


def render_template(name: str, template_dir: str = str(TEMPLATE_DIR), **context: Any) -> Markup:
    template = get_jinja_env(template_dir).get_template(name)
    return Markup(template.render(**context))
