"""Static and media URL resolution with optional CDN prefixing."""

import json
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from src.storefront.runtime.config.config_data import CDNConfig, StaticConfig

_ABSOLUTE_PREFIXES = ("http://", "https://", "//", "data:")


@dataclass
class AssetManifest:
    """Logical asset path -> fingerprinted path, as written by collect_static."""

    paths: dict[str, str] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "AssetManifest":
        """Read a manifest; a missing file means assets are served unhashed."""
        path = Path(path)
        if not path.exists():
            logger.info("No asset manifest at {}; serving logical asset paths", path)
            return cls()
        try:
            data = json.loads(path.read_text())
        except json.JSONDecodeError as e:
            raise ValueError(f"Asset manifest {path} is not valid JSON") from e
        return cls(paths=dict(data.get("paths", {})))

    def resolve(self, logical_path: str) -> str:
        return self.paths.get(logical_path, logical_path)

    def is_fingerprinted(self, path: str) -> bool:
        return path in self._fingerprinted

    @property
    def _fingerprinted(self) -> set[str]:
        return set(self.paths.values())


def _join(base: str, path: str) -> str:
    return f"{base.rstrip('/')}/{path.lstrip('/')}"


class AssetUrls:
    """Builds the URLs templates emit for stylesheets, scripts and images."""

    def __init__(
        self,
        static_config: StaticConfig,
        cdn_config: CDNConfig,
        manifest: AssetManifest | None = None,
    ) -> None:
        self._static = static_config
        self._cdn = cdn_config
        self._manifest = manifest or AssetManifest()

    @property
    def manifest(self) -> AssetManifest:
        return self._manifest

    @property
    def cdn_enabled(self) -> bool:
        return self._cdn.enabled

    def static_url(self, path: str) -> str:
        resolved = self._manifest.resolve(path.lstrip("/"))
        if self._cdn.enabled and self._cdn.static_base_url:
            return _join(self._cdn.static_base_url, resolved)
        return _join(self._static.url_prefix, resolved)

    def media_url(self, path: str | None) -> str | None:
        if not path:
            return None
        if path.startswith(_ABSOLUTE_PREFIXES):
            return path
        if self._cdn.enabled and self._cdn.media_base_url:
            return _join(self._cdn.media_base_url, path)
        return _join(self._static.media_url_prefix, path)

    def thumbnail_url(self, path: str | None, width: int | None = None) -> str | None:
        """Media URL asking the CDN for a resized rendition.

        Without a CDN there is nobody to resize, so the original is returned.
        """
        url = self.media_url(path)
        if url is None or not self._cdn.enabled:
            return url
        width = width or self._cdn.thumbnail_width
        separator = "&" if "?" in url else "?"
        return f"{url}{separator}{self._cdn.image_width_param}={width}"
