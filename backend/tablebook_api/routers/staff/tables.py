"""
Table management for the staff member's restaurant.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_staff, get_venue_id
from tablebook_shared.utils.schemas import TableCreate, TableOutput, TableUpdate
from tablebook_api.services.domain import VenueService


router = APIRouter(tags=["staff-tables"])


@router.get("/tables", response_model=list[TableOutput])
def list_tables(db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> list[TableOutput]:
    return [TableOutput.model_validate(t) for t in VenueService(db).list_tables(get_venue_id(ctx))]


@router.post("/tables", response_model=TableOutput, status_code=status.HTTP_201_CREATED)
def create_table(
    body: TableCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> TableOutput:
    """Returns 409 if the table number is already used in this restaurant."""
    return TableOutput.model_validate(VenueService(db).create_table(get_venue_id(ctx), body))


@router.patch("/tables/{table_id}", response_model=TableOutput)
def update_table(
    table_id: int,
    body: TableUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_staff),
) -> TableOutput:
    return TableOutput.model_validate(VenueService(db).update_table(get_venue_id(ctx), table_id, body))


@router.delete("/tables/{table_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_table(table_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_staff)) -> None:
    VenueService(db).delete_table(get_venue_id(ctx), table_id)
