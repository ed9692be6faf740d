"""
Public restaurant catalog: listing, detail, floor plan and menu.
No authentication required.
"""

from datetime import date, time

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.utils.schemas import (
    FloorPlanResponse,
    MenuOutput,
    RestaurantOutput,
)
from tablebook_api.services.domain import VenueService


router = APIRouter(prefix="/api/restaurants", tags=["restaurants"])


@router.get("", response_model=list[RestaurantOutput])
def list_restaurants(
    cuisine_type: str | None = None,
    db: Session = Depends(get_db),
) -> list[RestaurantOutput]:
    """Active restaurants, optionally filtered by cuisine."""
    restaurants = VenueService(db).list_restaurants(cuisine_type)
    return [RestaurantOutput.model_validate(r) for r in restaurants]


@router.get("/{restaurant_id}", response_model=RestaurantOutput)
def get_restaurant(restaurant_id: int, db: Session = Depends(get_db)) -> RestaurantOutput:
    return RestaurantOutput.model_validate(VenueService(db).get_restaurant(restaurant_id))


@router.get("/{restaurant_id}/floor-plan", response_model=FloorPlanResponse)
def floor_plan(
    restaurant_id: int,
    on_date: date | None = Query(default=None, alias="date"),
    at_time: time | None = Query(default=None, alias="time"),
    db: Session = Depends(get_db),
) -> FloorPlanResponse:
    """
    Tables with their booking state for a slot.
    Without both date and time, no table is reported as booked.
    """
    return VenueService(db).floor_plan(restaurant_id, on_date, at_time)


@router.get("/{restaurant_id}/menu", response_model=MenuOutput)
def menu(restaurant_id: int, db: Session = Depends(get_db)) -> MenuOutput:
    return VenueService(db).menu(restaurant_id)
