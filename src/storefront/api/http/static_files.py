"""Static file serving with far-future caching for fingerprinted assets."""

from pathlib import Path

from starlette.responses import Response
from starlette.staticfiles import StaticFiles
from starlette.types import Scope

from src.storefront.core.assets import AssetManifest


class CachedStaticFiles(StaticFiles):
    """``StaticFiles`` that marks fingerprinted files immutable.

    A fingerprinted name changes whenever the content does, so the files the
    manifest lists can be cached for ``max_age`` seconds. Everything else
    must revalidate.
    """

    def __init__(
        self,
        *,
        directory: str | Path,
        manifest: AssetManifest | None = None,
        max_age: int = 31536000,
    ) -> None:
        super().__init__(directory=directory)
        self._manifest = manifest or AssetManifest()
        self._max_age = max_age

    async def get_response(self, path: str, scope: Scope) -> Response:
        response = await super().get_response(path, scope)
        if response.status_code in (200, 304):
            if self._manifest.is_fingerprinted(Path(path).as_posix()):
                response.headers["Cache-Control"] = (
                    f"public, max-age={self._max_age}, immutable"
                )
            else:
                response.headers["Cache-Control"] = "public, max-age=0, must-revalidate"
        return response
