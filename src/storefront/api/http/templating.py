"""Jinja2 template rendering for the storefront pages."""

from pathlib import Path
from typing import Any

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import HTMLResponse

from src.storefront.api.http.app_data import ApplicationDependencies
from src.storefront.core.assets import image_attrs
from src.storefront.runtime.context import get_config

TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))


def _product_image_attrs(assets, src: str | None, alt: str, index: int) -> dict[str, str]:
    images = get_config().images
    return image_attrs(
        assets.thumbnail_url(src),
        alt,
        index,
        eager_count=images.eager_count,
        placeholder=assets.static_url(images.placeholder),
        width=images.width,
        height=images.height,
    )


def render(
    request: Request,
    name: str,
    context: dict[str, Any],
    status_code: int = 200,
) -> HTMLResponse:
    """Render ``name`` with the asset helpers every page needs."""
    app_deps: ApplicationDependencies = request.app.state.app_dependencies
    assets = app_deps.asset_urls
    page_context = {
        "static_url": assets.static_url,
        "media_url": assets.media_url,
        "thumbnail_url": assets.thumbnail_url,
        "placeholder_url": assets.static_url(get_config().images.placeholder),
        "img_attrs": lambda src, alt, index: _product_image_attrs(
            assets, src, alt, index
        ),
        **context,
    }
    return templates.TemplateResponse(
        request, name, page_context, status_code=status_code
    )
