from typing import Optional

from fastapi import Depends, Request, Response

from tenant_auth.auth import AuthGateway
from tenant_auth.config import Settings
from tenant_auth.schemas import SessionWithUser


def get_settings_from_app(request: Request) -> Settings:
    return request.app.state.settings


def get_gateway(request: Request) -> AuthGateway:
    """
    The gateway is built once in create_app and shared by all requests.
    """
    return request.app.state.gateway


def get_session_token(request: Request, settings: Settings = Depends(get_settings_from_app)) -> Optional[str]:
    return request.cookies.get(settings.cookie_name) or None


def require_auth(
    session_token: Optional[str] = Depends(get_session_token),
    gateway: AuthGateway = Depends(get_gateway),
) -> SessionWithUser:
    """
    Guard for protected routes.

    Raises Unauthorized (401) when there is no valid session; the exception
    handler clears the session cookie on the way out.
    """
    return gateway.require_auth(session_token)


def set_session_cookie(response: Response, settings: Settings, session_token: str) -> None:
    """
    Set session cookie with security flags.

    Cookie attributes:
    - httponly: Prevents JavaScript access (XSS protection)
    - secure: HTTPS only, on in production
    - samesite: Lax for CSRF protection while allowing normal navigation
    - max_age: matches the session TTL
    - path: Cookie sent on all paths

    The cookie only contains the session token (opaque value).
    All user data stays server-side.
    """
    response.set_cookie(
        key=settings.cookie_name,
        value=session_token,
        httponly=True,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
        max_age=settings.session_max_age_seconds,
        path="/",
        domain=settings.cookie_domain,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    """
    Clear session cookie by setting it empty with max_age=0.
    """
    response.set_cookie(
        key=settings.cookie_name,
        value="",
        httponly=True,
        secure=settings.secure_cookies,
        samesite=settings.cookie_samesite,
        max_age=0,
        path="/",
        domain=settings.cookie_domain,
    )
