from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.api.deps import log_action, require_permission
from app.db.session import get_db
from app.models.user import User
from app.models.vendor import Vendor
from app.schemas.vendors import VendorCreate, VendorRead, VendorUpdate


router = APIRouter()


def get_vendor(db: Session, vendor_id: int) -> Vendor:
    vendor = db.scalar(select(Vendor).where(Vendor.id == vendor_id))
    if not vendor:
        raise HTTPException(status_code=404, detail="Vendor not found")
    return vendor


@router.get("", response_model=list[VendorRead])
def list_vendors(
    search: str = "",
    db: Session = Depends(get_db),
    _: User = Depends(require_permission("vendors:view")),
) -> list[Vendor]:
    query = select(Vendor)
    if search:
        query = query.where(func.lower(Vendor.name).like(f"%{search.lower()}%"))
    return list(db.scalars(query.order_by(Vendor.name.asc())).all())


@router.post("", response_model=VendorRead, status_code=status.HTTP_201_CREATED)
def create_vendor(
    payload: VendorCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendors:write")),
) -> Vendor:
    vendor = Vendor(**payload.model_dump())
    db.add(vendor)
    db.commit()
    db.refresh(vendor)
    log_action(db, current_user.id, "create", "vendor", vendor.id, {"name": vendor.name})
    return vendor


@router.put("/{vendor_id}", response_model=VendorRead)
def update_vendor(
    vendor_id: int,
    payload: VendorUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendors:write")),
) -> Vendor:
    vendor = get_vendor(db, vendor_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    for field, value in changes.items():
        setattr(vendor, field, value)
    db.commit()
    db.refresh(vendor)
    log_action(db, current_user.id, "update", "vendor", vendor.id, changes)
    return vendor


@router.delete("/{vendor_id}")
def delete_vendor(
    vendor_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("vendors:write")),
) -> dict:
    vendor = get_vendor(db, vendor_id)
    name = vendor.name
    db.delete(vendor)
    db.commit()
    log_action(db, current_user.id, "delete", "vendor", vendor_id, {"name": name})
    return {"message": "Vendor deleted", "id": vendor_id}
