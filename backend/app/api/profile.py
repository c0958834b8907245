"""User profile API endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.deps import get_current_user, get_db
from app.models.profile import UserProfile
from app.models.user import User
from app.schemas.profile import ProfileResponse, ProfileUpdate
from app.services.reminder_store import ActivityLogSink

router = APIRouter(prefix="/profile", tags=["profile"])


@router.get("", response_model=ProfileResponse)
def get_profile(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get notification preferences, falling back to defaults."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == current_user.id).first()
    if not profile:
        return ProfileResponse(user_id=current_user.id)
    return profile


@router.put("", response_model=ProfileResponse)
def update_profile(
    profile_data: ProfileUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Create or update notification preferences."""
    profile = db.query(UserProfile).filter(UserProfile.user_id == current_user.id).first()
    if not profile:
        profile = UserProfile(user_id=current_user.id)
        db.add(profile)
    
    for field, value in profile_data.model_dump(exclude_unset=True).items():
        if field == "two_factor_enabled":
            value = 1 if value else 0
        elif value is None and field in (
            "preferred_reminder_channel",
            "reminder_frequency",
            "reminder_time_preference",
        ):
            continue
        setattr(profile, field, value)
    
    ActivityLogSink(db).record(current_user.id, "profile_update", "Updated profile settings")
    db.refresh(profile)
    return profile
