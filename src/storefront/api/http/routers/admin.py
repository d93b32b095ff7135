"""Catalog administration API with CRUD operations.

Every successful write commits and then invalidates the listing cache, so
the next storefront read sees the change.
"""

from anyio import from_thread
from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session

from src.storefront.api.http.deps import get_catalog_service, get_db_session
from src.storefront.core.services import CatalogService
from src.storefront.entities.catalog.category import Category, CategoryRepository
from src.storefront.entities.catalog.product import (
    DuplicateSlugError,
    Product,
    ProductNotFound,
    ProductRepository,
    UnknownCategoryError,
)

router = APIRouter(tags=["admin"])


def _invalidate(catalog: CatalogService) -> None:
    # sync handlers run in a worker thread; hop back to the event loop
    from_thread.run(catalog.invalidate)


@router.post("/products", response_model=Product, status_code=201)
def create_product(
    product: Product,
    session: Session = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Product:
    """Create a new product."""
    repository = ProductRepository(session)
    try:
        created_product = repository.create(product)
    except DuplicateSlugError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except UnknownCategoryError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    session.commit()
    _invalidate(catalog)
    return created_product


@router.get("/products/{item_id}", response_model=Product)
def get_product(
    item_id: str,
    session: Session = Depends(get_db_session),
) -> Product:
    """Get a product by ID, including inactive ones."""
    product = ProductRepository(session).get(item_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return product


@router.put("/products/{item_id}", response_model=Product)
def update_product(
    item_id: str,
    product_update: Product,
    session: Session = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Product:
    """Update a product."""
    repository = ProductRepository(session)

    # the path wins over any id in the body
    product_update.id = item_id

    try:
        updated_product = repository.update(product_update)
    except ProductNotFound as e:
        raise HTTPException(status_code=404, detail=str(e)) from e
    except DuplicateSlugError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    except UnknownCategoryError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
    session.commit()
    _invalidate(catalog)
    return updated_product


@router.delete("/products/{item_id}")
def delete_product(
    item_id: str,
    session: Session = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> dict[str, str]:
    """Delete a product."""
    deleted = ProductRepository(session).delete(item_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    session.commit()
    _invalidate(catalog)
    return {"message": "Product deleted successfully"}


@router.post("/categories", response_model=Category, status_code=201)
def create_category(
    category: Category,
    session: Session = Depends(get_db_session),
    catalog: CatalogService = Depends(get_catalog_service),
) -> Category:
    """Create a new category."""
    try:
        created = CategoryRepository(session).create(category)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e
    session.commit()
    _invalidate(catalog)
    return created
