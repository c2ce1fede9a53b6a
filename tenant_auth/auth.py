import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from argon2.exceptions import HashingError
from email_validator import EmailNotValidError, validate_email
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from tenant_auth.errors import Conflict, InternalError, InvalidInput, Unauthorized
from tenant_auth.schemas import SessionWithUser, UserPublic
from tenant_auth.security import generate_session_token, hash_password, verify_password
from tenant_auth.sessions import SessionStore
from tenant_auth.users import CredentialStore

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
# No complexity rules, but cap length so hashing cost stays bounded
MAX_PASSWORD_LENGTH = 128

MISSING_CREDENTIALS = "Email and password are required"
INVALID_CREDENTIALS = "Invalid email or password"
NO_SESSION_TOKEN = "Unauthorized - No session token"
INVALID_SESSION = "Unauthorized - Invalid or expired session"


def normalize_email(email: str) -> Optional[str]:
    """
    Return the canonical form of an email address, or None if it is not
    shaped like local@domain.tld.

    The whole address is lower-cased, so two addresses differing only in
    case belong to the same account.
    """
    try:
        validated = validate_email(email.strip(), check_deliverability=False)
    except EmailNotValidError:
        return None
    return validated.normalized.lower()


class AuthGateway:
    """
    Request-level authentication operations.

    Built once at startup around its stores and holds no per-request state.
    This is the only layer that raises caller-facing errors (tenant_auth.errors);
    cookies are left to the HTTP layer.
    """

    def __init__(self, users: CredentialStore, sessions: SessionStore):
        self.users = users
        self.sessions = sessions
        # Unknown emails are verified against this so sign-in takes
        # about as long whether or not the account exists
        self._dummy_hash = hash_password(generate_session_token())

    @contextmanager
    def _store_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except (SQLAlchemyError, HashingError) as exc:
            logger.exception("Unexpected failure while trying to %s", action)
            raise InternalError(f"Failed to {action}") from exc

    def sign_up(self, email: Optional[str], password: Optional[str], name: Optional[str] = None) -> UserPublic:
        """
        Create new user account.

        Does not create a session; the client signs in separately.

        Error cases:
        - InvalidInput: missing fields, bad email shape, bad password length
        - Conflict: email already registered
        - InternalError: database or hashing failure
        """
        if not email or not password:
            raise InvalidInput(MISSING_CREDENTIALS)

        normalized = normalize_email(email)
        if normalized is None:
            raise InvalidInput("Invalid email format")

        if len(password) < MIN_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")
        if len(password) > MAX_PASSWORD_LENGTH:
            raise InvalidInput(f"Password must be at most {MAX_PASSWORD_LENGTH} characters long")

        with self._store_errors("create user"):
            if self.users.get_by_email(normalized) is not None:
                raise Conflict("User with this email already exists")

            password_hash = hash_password(password)

            try:
                user = self.users.create(normalized, password_hash, name)
            except IntegrityError as exc:
                # Lost the race against a concurrent sign-up for the same email
                logger.info("Duplicate sign-up rejected by unique constraint")
                raise Conflict("User with this email already exists") from exc

        logger.info("Created user %s", user.id)
        return user

    def sign_in(self, email: Optional[str], password: Optional[str]) -> SessionWithUser:
        """
        Authenticate user and create session.

        Unknown email, missing password hash and wrong password all raise the
        same Unauthorized message so responses never reveal which accounts exist.
        """
        if not email or not password:
            raise InvalidInput(MISSING_CREDENTIALS)

        with self._store_errors("sign in"):
            normalized = normalize_email(email)
            credentials = self.users.get_by_email(normalized) if normalized else None

            if credentials is None or not credentials.password_hash:
                verify_password(password, self._dummy_hash)
                logger.info("Sign-in rejected: unknown account or no password set")
                raise Unauthorized(INVALID_CREDENTIALS)

            if not verify_password(password, credentials.password_hash):
                logger.info("Sign-in rejected: wrong password for user %s", credentials.user.id)
                raise Unauthorized(INVALID_CREDENTIALS)

            session = self.sessions.create(credentials.user.id)

        logger.info("User %s signed in", credentials.user.id)
        return SessionWithUser(session=session, user=credentials.user)

    def sign_out(self, session_token: Optional[str]) -> None:
        """
        Invalidate the session behind session_token, if any.

        Never raises: sign-out is best-effort from the client's point of view.
        """
        if not session_token:
            return
        try:
            self.sessions.delete(session_token)
        except Exception:
            logger.exception("Failed to delete session during sign-out")

    def get_session(self, session_token: Optional[str]) -> Optional[SessionWithUser]:
        """
        Return the session and its user, or None when the token is missing,
        unknown or expired.
        """
        if not session_token:
            return None
        with self._store_errors("get session"):
            return self.sessions.get(session_token)

    def require_auth(self, session_token: Optional[str]) -> SessionWithUser:
        """
        Same as get_session but raises Unauthorized instead of returning None.
        The error asks the HTTP layer to clear the session cookie.
        """
        if not session_token:
            raise Unauthorized(NO_SESSION_TOKEN, clear_cookie=True)

        context = self.get_session(session_token)
        if context is None:
            raise Unauthorized(INVALID_SESSION, clear_cookie=True)
        return context
