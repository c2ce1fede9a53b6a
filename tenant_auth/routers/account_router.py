from fastapi import APIRouter, Depends

from tenant_auth.dependencies import require_auth
from tenant_auth.schemas import MeResponse, OnboardingStatusResponse, SessionWithUser

router = APIRouter(tags=["account"])


@router.get("/me", response_model=MeResponse)
def me(context: SessionWithUser = Depends(require_auth)):
    """
    Get authenticated user's information.

    Returns 401 if not authenticated (handled by dependency).
    """
    return MeResponse(user=context.user)


@router.get("/onboarding/status", response_model=OnboardingStatusResponse)
def onboarding_status(context: SessionWithUser = Depends(require_auth)):
    """
    Whether the signed-in user still has to go through onboarding.
    Frontends use this to redirect to the company setup page.
    """
    user = context.user
    return OnboardingStatusResponse(
        needs_onboarding=user.needs_onboarding,
        onboarding_completed=user.onboarding_completed,
        tenant_id=user.tenant_id,
    )
