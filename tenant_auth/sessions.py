import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import joinedload

from tenant_auth.database import Database
from tenant_auth.models import Session as SessionModel
from tenant_auth.models import utcnow
from tenant_auth.schemas import SessionInfo, SessionWithUser, UserPublic
from tenant_auth.security import generate_session_token

logger = logging.getLogger(__name__)

DEFAULT_SESSION_TTL = timedelta(days=30)


class SessionStore:
    """
    Maps opaque session tokens to users.

    A session is valid only while now < expires. Expired rows are removed
    lazily on lookup and in bulk by cleanup_expired().

    Database errors propagate unchanged; "not found" is reported as None.
    """

    def __init__(
        self,
        database: Database,
        ttl: timedelta = DEFAULT_SESSION_TTL,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._database = database
        self.ttl = ttl
        self._clock = clock

    def create(self, user_id: str) -> SessionInfo:
        """
        Create new session for user.

        Returns the token to be stored in the cookie and its expiry.
        """
        session = SessionModel(
            session_token=generate_session_token(),
            user_id=user_id,
            expires=self._clock() + self.ttl,
        )
        with self._database.session_scope() as db:
            db.add(session)
            db.flush()
            return SessionInfo.model_validate(session)

    def get(self, session_token: str) -> Optional[SessionWithUser]:
        """
        Validate session and retrieve associated user.

        Returns None if:
        - Session doesn't exist
        - Session is expired (the row is deleted as a side effect)
        """
        with self._database.session_scope() as db:
            session = db.scalars(
                select(SessionModel)
                .options(joinedload(SessionModel.user))
                .where(SessionModel.session_token == session_token)
            ).first()

            if session is None:
                return None

            if session.expires <= self._clock() or session.user is None:
                db.execute(delete(SessionModel).where(SessionModel.id == session.id))
                logger.debug("Removed expired session %s", session.id)
                return None

            return SessionWithUser(
                session=SessionInfo.model_validate(session),
                user=UserPublic.model_validate(session.user),
            )

    def delete(self, session_token: str) -> None:
        """
        Delete session (sign-out).

        Idempotent: deleting a token that does not exist is not an error.
        """
        with self._database.session_scope() as db:
            db.execute(delete(SessionModel).where(SessionModel.session_token == session_token))

    def delete_all_for_user(self, user_id: str) -> int:
        """
        Delete all sessions for a user.

        Useful for:
        - Password change (invalidate all sessions)
        - Account suspension

        Returns number of sessions deleted.
        """
        with self._database.session_scope() as db:
            result = db.execute(delete(SessionModel).where(SessionModel.user_id == user_id))
            return result.rowcount

    def cleanup_expired(self) -> int:
        """
        Remove expired sessions from database.

        A single bulk DELETE, so concurrent or repeated runs never remove a
        row twice. Returns number of sessions cleaned up.
        """
        with self._database.session_scope() as db:
            result = db.execute(delete(SessionModel).where(SessionModel.expires <= self._clock()))
            count = result.rowcount
        if count:
            logger.info("Cleaned up %d expired sessions", count)
        return count
