"""Storefront catalog service.

A product catalog web service whose listing pages are built for speed:
eager-loaded and projected queries, page-number and keyset pagination,
versioned response caching, lazy images and fingerprinted, CDN-served assets.
"""

__version__ = "0.1.0"
