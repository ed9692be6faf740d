"""
Menu categories and items for the staff member's restaurant.
Deleting a category keeps its items, uncategorized.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_staff, get_venue_id
from tablebook_shared.utils.schemas import (
    MenuCategoryCreate,
    MenuCategoryOutput,
    MenuCategoryUpdate,
    MenuItemCreate,
    MenuItemOutput,
    MenuItemUpdate,
)
from tablebook_api.services.domain import VenueService


router = APIRouter(prefix="/menu", tags=["staff-menu"])


# =============================================================================
# Categories
# =============================================================================


@router.get("/categories", response_model=list[MenuCategoryOutput])
def list_categories(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> list[MenuCategoryOutput]:
    return [MenuCategoryOutput.model_validate(c) for c in VenueService(db).list_categories(get_venue_id(ctx))]


@router.post("/categories", response_model=MenuCategoryOutput, status_code=status.HTTP_201_CREATED)
def create_category(
    body: MenuCategoryCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> MenuCategoryOutput:
    return MenuCategoryOutput.model_validate(VenueService(db).create_category(get_venue_id(ctx), body))


@router.patch("/categories/{category_id}", response_model=MenuCategoryOutput)
def update_category(
    category_id: int,
    body: MenuCategoryUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> MenuCategoryOutput:
    return MenuCategoryOutput.model_validate(
        VenueService(db).update_category(get_venue_id(ctx), category_id, body)
    )


@router.delete("/categories/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(category_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> None:
    VenueService(db).delete_category(get_venue_id(ctx), category_id)


# =============================================================================
# Items
# =============================================================================


@router.get("/items", response_model=list[MenuItemOutput])
def list_items(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> list[MenuItemOutput]:
    return [MenuItemOutput.model_validate(i) for i in VenueService(db).list_items(get_venue_id(ctx))]


@router.post("/items", response_model=MenuItemOutput, status_code=status.HTTP_201_CREATED)
def create_item(
    body: MenuItemCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> MenuItemOutput:
    """Returns 400 if the category belongs to another restaurant."""
    return MenuItemOutput.model_validate(VenueService(db).create_item(get_venue_id(ctx), body))


@router.patch("/items/{item_id}", response_model=MenuItemOutput)
def update_item(
    item_id: int,
    body: MenuItemUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> MenuItemOutput:
    return MenuItemOutput.model_validate(VenueService(db).update_item(get_venue_id(ctx), item_id, body))


@router.delete("/items/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_item(item_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> None:
    VenueService(db).delete_item(get_venue_id(ctx), item_id)
