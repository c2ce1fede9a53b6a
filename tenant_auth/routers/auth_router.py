from typing import Optional

from fastapi import APIRouter, Depends, Response

from tenant_auth.auth import AuthGateway
from tenant_auth.config import Settings
from tenant_auth.dependencies import (
    clear_session_cookie,
    get_gateway,
    get_session_token,
    get_settings_from_app,
    set_session_cookie,
)
from tenant_auth.schemas import (
    SessionResponse,
    SigninRequest,
    SignInResponse,
    SignOutResponse,
    SignupRequest,
    SignUpResponse,
)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=SignUpResponse)
def signup(request: SignupRequest, gateway: AuthGateway = Depends(get_gateway)):
    """
    Create new user account.

    Process:
    1. Validate input
    2. Normalize email to lowercase
    3. Hash password
    4. Insert user into database

    No session is created; the client signs in afterwards.

    Error cases:
    - 400: Missing fields, invalid email, password too short or too long
    - 409: Email already exists
    - 500: Database error
    """
    user = gateway.sign_up(request.email, request.password, request.name)
    return SignUpResponse(user=user)


@router.post("/signin", response_model=SignInResponse)
def signin(
    request: SigninRequest,
    response: Response,
    gateway: AuthGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Authenticate user and create session.

    Security notes:
    - Generic error message prevents email enumeration
    - Constant-time password verification prevents timing attacks
    - No indication whether email or password was wrong
    """
    result = gateway.sign_in(request.email, request.password)
    set_session_cookie(response, settings, result.session.session_token)
    return SignInResponse(session=result.session, user=result.user)


@router.post("/signout", response_model=SignOutResponse)
def signout(
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    gateway: AuthGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Invalidate session and clear cookie.

    Returns success even if session doesn't exist (idempotent).
    """
    gateway.sign_out(session_token)
    clear_session_cookie(response, settings)
    return SignOutResponse()


@router.get("/get-session", response_model=SessionResponse)
def get_session(
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    gateway: AuthGateway = Depends(get_gateway),
    settings: Settings = Depends(get_settings_from_app),
):
    """
    Current session, or nulls when not signed in.

    A cookie pointing at an unknown or expired session is cleared.
    """
    context = gateway.get_session(session_token)
    if context is None:
        if session_token:
            clear_session_cookie(response, settings)
        return SessionResponse()
    return SessionResponse(session=context.session, user=context.user)
