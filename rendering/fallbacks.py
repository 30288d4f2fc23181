from typing import Optional

from markupsafe import Markup

from . import config
from .templates import render_template


def unknown_section(block_type: str, development: Optional[bool] = None) -> Optional[Markup]:
    """Visible placeholder for unregistered kinds. Production renders nothing."""
    if development is None:
        development = config.IS_DEVELOPMENT
    if not development:
        return None
    return render_template("unknown_section.html", block_type=block_type)


def missing_image(alt: Optional[str] = None) -> Markup:
    return render_template("missing_image.html", alt=alt)
