import logging
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.core.auth import get_current_profile
from app.models.business import Business
from app.models.profile import Profile
from app.schemas.profile import MeRead

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/me", tags=["me"])


@router.get("", response_model=MeRead)
def get_me(
    current_profile: Profile = Depends(get_current_profile),
    db: Session = Depends(get_db)
):
    """
    Get the authenticated user's profile.
    user_type tells the client which dashboard to show (customer or business).
    """
    me = MeRead.model_validate(current_profile)
    if current_profile.is_business:
        business = db.query(Business).filter(Business.owner_id == current_profile.id).first()
        if business:
            me.business_id = business.id
    return me
