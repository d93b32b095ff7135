"""Static asset pipeline: minify, fingerprint, precompress.

``collect_static`` turns the source asset tree into a deployable tree where
every file also exists under a content-hashed name (``app.3f2a9c1b0d4e.css``).
Hashed names never change content, so they can be served with a one-year
``immutable`` cache lifetime from the app or a CDN.
"""

import gzip
import hashlib
import json
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

import rcssmin
import rjsmin
from loguru import logger

MINIFIABLE = {".css", ".js"}
COMPRESSIBLE = {".css", ".js", ".svg", ".json", ".html", ".txt", ".map"}
HASH_LENGTH = 12


def minify_css(text: str) -> str:
    return rcssmin.cssmin(text)


def minify_js(text: str) -> str:
    return rjsmin.jsmin(text)


def is_preminified(name: str) -> bool:
    return name.endswith((".min.css", ".min.js"))


def content_hash(data: bytes) -> str:
    return hashlib.md5(data, usedforsecurity=False).hexdigest()[:HASH_LENGTH]


def fingerprinted_name(relative_path: str, data: bytes) -> str:
    """``css/site.css`` -> ``css/site.<hash>.css``."""
    path = PurePosixPath(relative_path)
    return str(path.with_name(f"{path.stem}.{content_hash(data)}{path.suffix}"))


@dataclass
class CollectedFile:
    path: str
    fingerprinted: str
    original_size: int
    final_size: int
    minified: bool = False


@dataclass
class CollectResult:
    output_dir: Path
    manifest_path: Path
    files: list[CollectedFile] = field(default_factory=list)

    @property
    def original_bytes(self) -> int:
        return sum(f.original_size for f in self.files)

    @property
    def final_bytes(self) -> int:
        return sum(f.final_size for f in self.files)

    @property
    def saved_bytes(self) -> int:
        return self.original_bytes - self.final_bytes


def _process(relative_path: str, data: bytes, minify: bool) -> tuple[bytes, bool]:
    suffix = PurePosixPath(relative_path).suffix
    if not minify or suffix not in MINIFIABLE or is_preminified(relative_path):
        return data, False
    text = data.decode("utf-8")
    result = minify_css(text) if suffix == ".css" else minify_js(text)
    return result.encode("utf-8"), True


def _write(target: Path, data: bytes, precompress: bool) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_bytes(data)
    if precompress and target.suffix in COMPRESSIBLE:
        # mtime=0 keeps the archive byte-identical across runs
        target.with_name(target.name + ".gz").write_bytes(
            gzip.compress(data, compresslevel=9, mtime=0)
        )


def collect_static(
    source_dir: Path,
    output_dir: Path,
    *,
    minify: bool = True,
    precompress: bool = True,
    manifest_name: str = "manifest.json",
    clean: bool = False,
) -> CollectResult:
    """Copy ``source_dir`` into ``output_dir`` minified and fingerprinted.

    Raises:
        FileNotFoundError: if ``source_dir`` does not exist.
        ValueError: if the two directories overlap.
    """
    source_dir = Path(source_dir)
    output_dir = Path(output_dir)
    if not source_dir.is_dir():
        raise FileNotFoundError(f"Static source directory not found: {source_dir}")

    resolved_source = source_dir.resolve()
    resolved_output = output_dir.resolve()
    if (
        resolved_output == resolved_source
        or resolved_output.is_relative_to(resolved_source)
        or resolved_source.is_relative_to(resolved_output)
    ):
        raise ValueError(
            f"Output directory {output_dir} overlaps source directory {source_dir}"
        )

    if clean and output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    result = CollectResult(output_dir=output_dir, manifest_path=output_dir / manifest_name)
    paths: dict[str, str] = {}

    for source in sorted(source_dir.rglob("*")):
        if not source.is_file():
            continue
        relative_path = source.relative_to(source_dir)
        if any(part.startswith(".") for part in relative_path.parts):
            continue
        relative = relative_path.as_posix()
        original = source.read_bytes()
        data, minified = _process(relative, original, minify)
        hashed = fingerprinted_name(relative, data)

        _write(output_dir / relative, data, precompress)
        _write(output_dir / hashed, data, precompress)

        paths[relative] = hashed
        result.files.append(
            CollectedFile(
                path=relative,
                fingerprinted=hashed,
                original_size=len(original),
                final_size=len(data),
                minified=minified,
            )
        )

    result.manifest_path.write_text(
        json.dumps({"version": 1, "paths": paths}, indent=2, sort_keys=True)
    )
    logger.info(
        "Collected static assets",
        files=len(result.files),
        original_bytes=result.original_bytes,
        final_bytes=result.final_bytes,
        output_dir=str(output_dir),
    )
    return result
