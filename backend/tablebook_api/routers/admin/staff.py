"""
Staff account management for platform administrators.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from tablebook_shared.infrastructure.db import get_db
from tablebook_shared.security.auth import require_admin
from tablebook_shared.utils.schemas import StaffCreate, StaffOutput, StaffUpdate
from tablebook_api.services.domain import StaffAdminService


router = APIRouter(tags=["admin-staff"])


@router.get("/staff", response_model=list[StaffOutput])
def list_staff(
    restaurant_id: int | None = None,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> list[StaffOutput]:
    return [StaffOutput.model_validate(s) for s in StaffAdminService(db).list_all(restaurant_id)]


@router.get("/staff/{staff_id}", response_model=StaffOutput)
def get_staff(staff_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_admin)) -> StaffOutput:
    return StaffOutput.model_validate(StaffAdminService(db).get(staff_id))


@router.post("/staff", response_model=StaffOutput, status_code=status.HTTP_201_CREATED)
def create_staff(
    body: StaffCreate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> StaffOutput:
    """Returns 409 if the email is already used by another staff account."""
    return StaffOutput.model_validate(StaffAdminService(db).create(body))


@router.put("/staff/{staff_id}", response_model=StaffOutput)
def update_staff(
    staff_id: int,
    body: StaffUpdate,
    db: Session = Depends(get_db),
    ctx: dict = Depends(require_admin),
) -> StaffOutput:
    return StaffOutput.model_validate(StaffAdminService(db).update(staff_id, body))


@router.delete("/staff/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_staff(staff_id: int, db: Session = Depends(get_db), ctx: dict = Depends(require_admin)) -> None:
    StaffAdminService(db).delete(staff_id)
