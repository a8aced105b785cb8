from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session, joinedload
from uuid import UUID
from typing import Optional

from app.core.auth import require_business
from app.db.session import get_db
from app.models.business import Business
from app.models.profile import Profile
from app.schemas.business import BusinessRead, BusinessReadWithOwner

router = APIRouter(prefix="/businesses", tags=["businesses"])


@router.get("", response_model=list[BusinessRead])
def list_businesses(
    name: Optional[str] = Query(None, description="Search by business name"),
    db: Session = Depends(get_db)
):
    """List businesses, newest first, with optional name filter."""
    query = db.query(Business)
    if name:
        query = query.filter(Business.business_name.ilike(f"%{name}%"))
    return query.order_by(Business.created_at.desc(), Business.business_name).all()


@router.get("/mine", response_model=BusinessRead)
def get_my_business(
    current_profile: Profile = Depends(require_business),
    db: Session = Depends(get_db),
):
    """The business owned by the authenticated business account."""
    business = db.query(Business).filter(Business.owner_id == current_profile.id).first()
    if not business:
        raise HTTPException(status_code=404, detail="Business not set up")
    return business


@router.get("/{business_id}", response_model=BusinessReadWithOwner)
def get_business(business_id: UUID, db: Session = Depends(get_db)):
    """
    Get business by ID.
    Includes the owner's name, email and phone for the public business profile page.
    """
    business = (
        db.query(Business)
        .options(joinedload(Business.owner))
        .filter(Business.id == business_id)
        .first()
    )
    if not business:
        raise HTTPException(status_code=404, detail="Business not found")
    return business
