"""Attributes for lazily loaded product images."""


def image_attrs(
    src: str | None,
    alt: str,
    index: int,
    *,
    eager_count: int,
    placeholder: str,
    width: int,
    height: int,
) -> dict[str, str]:
    """Attributes of the ``<img>`` at position ``index`` in a product grid.

    The first ``eager_count`` images are above the fold and load at once with
    high priority. The rest keep a placeholder in ``src`` and the real URL in
    ``data-src``; the browser defers them through ``loading="lazy"`` and the
    listing script swaps them in when they approach the viewport. Explicit
    dimensions keep the grid from shifting while images arrive.
    """
    attrs = {
        "alt": alt,
        "width": str(width),
        "height": str(height),
    }
    if src is None:
        attrs["src"] = placeholder
        attrs["loading"] = "lazy"
        return attrs

    if index < eager_count:
        attrs.update({"src": src, "loading": "eager", "fetchpriority": "high"})
    else:
        attrs.update(
            {
                "src": placeholder,
                "data-src": src,
                "loading": "lazy",
                "decoding": "async",
                "class": "lazy",
            }
        )
    return attrs
