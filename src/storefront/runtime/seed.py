"""Deterministic demo catalog for development and load testing."""

import random
import re
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from loguru import logger
from sqlmodel import Session

from src.storefront.entities._base import utcnow
from src.storefront.entities.catalog.category import Category, CategoryRepository
from src.storefront.entities.catalog.product import (
    Product,
    ProductImageTable,
    ProductRepository,
)

CATEGORY_NAMES = [
    "Audio",
    "Books",
    "Cameras",
    "Garden",
    "Home Office",
    "Kitchen",
    "Outdoor",
    "Toys",
]
ADJECTIVES = [
    "Compact",
    "Classic",
    "Deluxe",
    "Everyday",
    "Lightweight",
    "Modern",
    "Portable",
    "Rugged",
    "Smart",
    "Vintage",
]
NOUNS = [
    "Backpack",
    "Blender",
    "Desk Lamp",
    "Headphones",
    "Kettle",
    "Notebook",
    "Planter",
    "Speaker",
    "Tent",
    "Tripod",
]


def slugify(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


@dataclass
class SeedResult:
    categories: int
    products: int
    images: int


def seed_catalog(
    session: Session,
    *,
    categories: int = 6,
    products: int = 200,
    seed: int = 42,
) -> SeedResult:
    """Insert ``products`` products spread over ``categories`` categories.

    The same ``seed`` always produces the same catalog. Creation times are
    spread over the past year so every sort order has something to do.
    """
    rng = random.Random(seed)
    category_repository = CategoryRepository(session)
    product_repository = ProductRepository(session)

    created_categories: list[Category] = []
    for name in CATEGORY_NAMES[: max(1, min(categories, len(CATEGORY_NAMES)))]:
        existing = category_repository.get_by_slug(slugify(name))
        created_categories.append(
            existing
            or category_repository.create(
                Category(name=name, slug=slugify(name), description=f"{name} products")
            )
        )

    now = utcnow()
    product_count = 0
    image_count = 0
    for index in range(products):
        name = f"{rng.choice(ADJECTIVES)} {rng.choice(NOUNS)}"
        slug = f"{slugify(name)}-{seed}-{index}"
        # draw every value first so skipped rows do not shift later ones
        created_at = now - timedelta(minutes=rng.randint(0, 60 * 24 * 365))
        price = Decimal(rng.randint(199, 49999)) / 100
        stock = 0 if rng.random() < 0.1 else rng.randint(1, 50)
        is_active = rng.random() >= 0.05
        category = rng.choice(created_categories)
        extra_images = rng.randint(0, 3)

        if product_repository.get_by_slug(slug) is not None:
            continue

        product = product_repository.create(
            Product(
                name=name,
                slug=slug,
                description=f"{name}, item {index} of the demo catalog.",
                price=price,
                stock=stock,
                is_active=is_active,
                image_url=f"products/{slug}.jpg",
                category_id=category.id,
                created_at=created_at,
                updated_at=created_at,
            )
        )
        product_count += 1
        for position in range(extra_images):
            session.add(
                ProductImageTable(
                    product_id=product.id,
                    url=f"products/{slug}-{position + 1}.jpg",
                    alt_text=f"{name} view {position + 1}",
                    position=position,
                )
            )
            image_count += 1

    session.flush()
    result = SeedResult(
        categories=len(created_categories),
        products=product_count,
        images=image_count,
    )
    logger.info(
        "Seeded demo catalog",
        categories=result.categories,
        products=result.products,
        images=result.images,
        seed=seed,
    )
    return result
