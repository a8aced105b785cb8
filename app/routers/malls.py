from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from uuid import UUID

from app.db.session import get_db
from app.models.mall import Mall
from app.schemas.mall import MallRead

router = APIRouter(prefix="/malls", tags=["malls"])


@router.get("", response_model=list[MallRead])
def list_malls(db: Session = Depends(get_db)):
    """List malls ordered by name."""
    return db.query(Mall).order_by(Mall.name).all()


@router.get("/{mall_id}", response_model=MallRead)
def get_mall(mall_id: UUID, db: Session = Depends(get_db)):
    """Get mall by ID."""
    mall = db.query(Mall).filter(Mall.id == mall_id).first()
    if not mall:
        raise HTTPException(status_code=404, detail="Mall not found")
    return mall
