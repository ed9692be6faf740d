"""
Restaurant CRUD for platform administrators.
Unlike the public catalog, inactive restaurants are included.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_admin
from tablebook_shared.utils.schemas import RestaurantCreate, RestaurantOutput, RestaurantUpdate
from tablebook_api.services.domain import RestaurantAdminService


router = APIRouter(tags=["admin-restaurants"])


@router.get("/restaurants", response_model=list[RestaurantOutput])
def list_restaurants(db: Session = Depends(get_db), ctx: dict = Depends(require_admin)) -> list[RestaurantOutput]:
    return [RestaurantOutput.model_validate(r) for r in RestaurantAdminService(db).list_all()]


@router.get("/restaurants/{restaurant_id}", response_model=RestaurantOutput)
def get_restaurant(
    restaurant_id: int,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> RestaurantOutput:
    return RestaurantOutput.model_validate(RestaurantAdminService(db).get(restaurant_id))


@router.post("/restaurants", response_model=RestaurantOutput, status_code=status.HTTP_201_CREATED)
def create_restaurant(
    body: RestaurantCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> RestaurantOutput:
    return RestaurantOutput.model_validate(RestaurantAdminService(db).create(body))


@router.put("/restaurants/{restaurant_id}", response_model=RestaurantOutput)
def update_restaurant(
    restaurant_id: int,
    body: RestaurantUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> RestaurantOutput:
    return RestaurantOutput.model_validate(RestaurantAdminService(db).update(restaurant_id, body))


@router.delete("/restaurants/{restaurant_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_restaurant(restaurant_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_admin)) -> None:
    """Deletes the restaurant with its tables, menu, staff and reservations."""
    RestaurantAdminService(db).delete(restaurant_id)
