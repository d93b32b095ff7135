"""Tests for the static asset pipeline, asset URLs and lazy image attributes."""

import gzip
import json
from pathlib import Path

import pytest

from src.storefront.core.assets import (
    AssetManifest,
    AssetUrls,
    collect_static,
    image_attrs,
    minify_css,
    minify_js,
)
from src.storefront.core.assets.pipeline import content_hash, fingerprinted_name
from src.storefront.runtime.config.config_data import CDNConfig, StaticConfig

CSS = """
/* card layout */
.card {
    color : red ;
    margin: 0 auto;
}
"""

JS = """
// greet the user
function greet(name) {
    var message = "hello " + name;
    return message;
}
"""


@pytest.fixture
def asset_source(tmp_path: Path) -> Path:
    source = tmp_path / "static"
    (source / "css").mkdir(parents=True)
    (source / "js").mkdir()
    (source / "img").mkdir()
    (source / "css" / "site.css").write_text(CSS)
    (source / "js" / "app.js").write_text(JS)
    (source / "js" / "vendor.min.js").write_text("var a = 1 ;  var b = 2;")
    (source / "img" / "logo.png").write_bytes(b"\x89PNG fake image")
    (source / ".hidden").write_text("secret")
    return source


class TestMinification:
    def test_css_loses_comments_and_whitespace(self):
        result = minify_css(CSS)

        assert "card layout" not in result
        assert ".card{" in result
        assert len(result) < len(CSS)

    def test_js_loses_comments(self):
        result = minify_js(JS)

        assert "greet the user" not in result
        assert "function greet(name)" in result
        assert len(result) < len(JS)


class TestFingerprinting:
    def test_hash_is_content_based(self):
        assert content_hash(b"a") == content_hash(b"a")
        assert content_hash(b"a") != content_hash(b"b")
        assert len(content_hash(b"a")) == 12

    def test_fingerprinted_name_keeps_directory_and_suffix(self):
        name = fingerprinted_name("css/site.css", b"body{}")
        assert name == f"css/site.{content_hash(b'body{}')}.css"


class TestCollectStatic:
    def test_writes_plain_and_hashed_copies(self, asset_source, tmp_path):
        output = tmp_path / "out"

        result = collect_static(asset_source, output, minify=True, precompress=True)

        manifest = json.loads((output / "manifest.json").read_text())
        hashed_css = manifest["paths"]["css/site.css"]
        assert manifest["version"] == 1
        assert (output / "css" / "site.css").exists()
        assert (output / hashed_css).read_text() == (output / "css/site.css").read_text()
        assert len(result.files) == 4

    def test_dot_files_are_skipped(self, asset_source, tmp_path):
        result = collect_static(asset_source, tmp_path / "out")

        assert ".hidden" not in {f.path for f in result.files}
        assert not (tmp_path / "out" / ".hidden").exists()

    def test_minifies_text_assets_only(self, asset_source, tmp_path):
        result = collect_static(asset_source, tmp_path / "out", minify=True)
        by_path = {f.path: f for f in result.files}

        assert by_path["css/site.css"].minified
        assert by_path["js/app.js"].minified
        assert not by_path["js/vendor.min.js"].minified
        assert not by_path["img/logo.png"].minified
        assert result.saved_bytes > 0
        assert result.final_bytes == result.original_bytes - result.saved_bytes

    def test_without_minify_content_is_unchanged(self, asset_source, tmp_path):
        output = tmp_path / "out"
        collect_static(asset_source, output, minify=False)

        assert (output / "css" / "site.css").read_text() == CSS

    def test_precompressed_siblings(self, asset_source, tmp_path):
        output = tmp_path / "out"
        collect_static(asset_source, output, precompress=True)

        compressed = output / "css" / "site.css.gz"
        assert compressed.exists()
        assert gzip.decompress(compressed.read_bytes()) == (
            output / "css" / "site.css"
        ).read_bytes()
        assert not (output / "img" / "logo.png.gz").exists()

    def test_runs_are_reproducible(self, asset_source, tmp_path):
        first = collect_static(asset_source, tmp_path / "a")
        second = collect_static(asset_source, tmp_path / "b")

        assert [f.fingerprinted for f in first.files] == [
            f.fingerprinted for f in second.files
        ]
        assert (tmp_path / "a" / "css" / "site.css.gz").read_bytes() == (
            tmp_path / "b" / "css" / "site.css.gz"
        ).read_bytes()

    def test_clean_removes_stale_files(self, asset_source, tmp_path):
        output = tmp_path / "out"
        output.mkdir()
        (output / "stale.css").write_text("old")

        collect_static(asset_source, output, clean=True)

        assert not (output / "stale.css").exists()

    def test_missing_source(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            collect_static(tmp_path / "nope", tmp_path / "out")

    @pytest.mark.parametrize(
        "output_name", [".", "collected", ".."], ids=["same", "inside", "parent"]
    )
    def test_overlapping_output_is_rejected(self, asset_source, output_name):
        with pytest.raises(ValueError, match="overlaps"):
            collect_static(asset_source, asset_source / output_name, clean=True)

        assert (asset_source / "css" / "site.css").read_text() == CSS
        assert not (asset_source / "manifest.json").exists()


class TestAssetManifest:
    def test_missing_manifest_is_empty(self, tmp_path):
        manifest = AssetManifest.load(tmp_path / "manifest.json")
        assert manifest.resolve("css/site.css") == "css/site.css"

    def test_invalid_manifest(self, tmp_path):
        path = tmp_path / "manifest.json"
        path.write_text("{broken")
        with pytest.raises(ValueError):
            AssetManifest.load(path)

    def test_resolves_collected_paths(self, asset_source, tmp_path):
        result = collect_static(asset_source, tmp_path / "out")
        manifest = AssetManifest.load(result.manifest_path)
        hashed = manifest.resolve("css/site.css")

        assert hashed != "css/site.css"
        assert manifest.is_fingerprinted(hashed)
        assert not manifest.is_fingerprinted("css/site.css")


class TestAssetUrls:
    def _urls(self, cdn: CDNConfig | None = None, paths=None) -> AssetUrls:
        return AssetUrls(
            StaticConfig(url_prefix="/static/", media_url_prefix="/media/"),
            cdn or CDNConfig(),
            AssetManifest(paths=paths or {}),
        )

    def test_local_static_url(self):
        assert self._urls().static_url("css/site.css") == "/static/css/site.css"

    def test_fingerprinted_static_url(self):
        urls = self._urls(paths={"css/site.css": "css/site.abc123def456.css"})
        assert urls.static_url("/css/site.css") == "/static/css/site.abc123def456.css"

    def test_cdn_static_url(self):
        urls = self._urls(
            CDNConfig(enabled=True, static_base_url="https://cdn.example.com/assets/"),
            {"js/app.js": "js/app.0123456789ab.js"},
        )
        assert urls.static_url("js/app.js") == (
            "https://cdn.example.com/assets/js/app.0123456789ab.js"
        )

    def test_cdn_disabled_ignores_base_url(self):
        urls = self._urls(CDNConfig(enabled=False, static_base_url="https://cdn.example.com"))
        assert urls.static_url("css/site.css") == "/static/css/site.css"

    def test_media_urls(self):
        urls = self._urls()

        assert urls.media_url("products/a.jpg") == "/media/products/a.jpg"
        assert urls.media_url("https://img.example.com/a.jpg") == "https://img.example.com/a.jpg"
        assert urls.media_url(None) is None

    def test_thumbnail_without_cdn_is_original(self):
        assert self._urls().thumbnail_url("products/a.jpg") == "/media/products/a.jpg"

    def test_thumbnail_with_cdn_requests_width(self):
        urls = self._urls(
            CDNConfig(
                enabled=True,
                media_base_url="https://media.example.com",
                image_width_param="width",
                thumbnail_width=320,
            )
        )

        assert urls.thumbnail_url("products/a.jpg") == (
            "https://media.example.com/products/a.jpg?width=320"
        )
        assert urls.thumbnail_url("products/a.jpg?v=2", 640) == (
            "https://media.example.com/products/a.jpg?v=2&width=640"
        )


class TestImageAttrs:
    def _attrs(self, src, index):
        return image_attrs(
            src,
            "Lamp",
            index,
            eager_count=2,
            placeholder="/static/img/placeholder.svg",
            width=400,
            height=300,
        )

    def test_above_the_fold_images_load_eagerly(self):
        attrs = self._attrs("/media/a.jpg", 1)

        assert attrs["src"] == "/media/a.jpg"
        assert attrs["loading"] == "eager"
        assert attrs["fetchpriority"] == "high"
        assert "data-src" not in attrs

    def test_later_images_are_deferred(self):
        attrs = self._attrs("/media/a.jpg", 2)

        assert attrs["src"] == "/static/img/placeholder.svg"
        assert attrs["data-src"] == "/media/a.jpg"
        assert attrs["loading"] == "lazy"
        assert attrs["class"] == "lazy"

    def test_dimensions_are_always_set(self):
        for index in (0, 5):
            attrs = self._attrs("/media/a.jpg", index)
            assert (attrs["width"], attrs["height"]) == ("400", "300")

    def test_missing_image_uses_placeholder(self):
        attrs = self._attrs(None, 0)

        assert attrs["src"] == "/static/img/placeholder.svg"
        assert "data-src" not in attrs
