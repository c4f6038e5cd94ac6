from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typify.db import get_db
from typify.models import User
from typify.schemas import OnboardingIn, UserOut
from typify.security.auth import require_user
from typify.services import onboarding
from typify.services.onboarding import OnboardingError

router = APIRouter(prefix="/api/onboarding", tags=["onboarding"])

@router.get("/options")
def onboarding_options():
    return onboarding.options()

@router.patch("", response_model=UserOut)
def complete_onboarding(
    payload: OnboardingIn,
    user: User = Depends(require_user),
    db: Session = Depends(get_db)
):
    """Saves the wizard choices and locks the chosen platform for a week."""
    try:
        return onboarding.complete_onboarding(
            db, user,
            industry=payload.industry,
            tone=payload.tone,
            topics=payload.topics,
            platform=payload.platform,
        )
    except OnboardingError as e:
        raise HTTPException(status_code=400, detail=str(e))
