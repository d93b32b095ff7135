from .images import image_attrs
from .pipeline import CollectResult, collect_static, minify_css, minify_js
from .urls import AssetManifest, AssetUrls

__all__ = [
    "AssetManifest",
    "AssetUrls",
    "CollectResult",
    "collect_static",
    "image_attrs",
    "minify_css",
    "minify_js",
]
