from typing import Optional

from sqlalchemy import select

from tenant_auth.database import Database
from tenant_auth.models import User
from tenant_auth.schemas import UserCredentials, UserPublic


class CredentialStore:
    """
    Persistent user records.

    Emails are expected to be normalized by the caller. Every method runs in
    its own transaction and returns plain schemas, never ORM instances.
    """

    def __init__(self, database: Database):
        self._database = database

    def get_by_email(self, email: str) -> Optional[UserCredentials]:
        with self._database.session_scope() as db:
            user = db.scalars(select(User).where(User.email == email)).first()
            if user is None:
                return None
            return UserCredentials(
                user=UserPublic.model_validate(user),
                password_hash=user.password_hash,
            )

    def create(self, email: str, password_hash: Optional[str], name: Optional[str] = None) -> UserPublic:
        """
        Insert a new user.

        Raises sqlalchemy.exc.IntegrityError if the email is already taken,
        including when another request inserted it after our last check.
        """
        with self._database.session_scope() as db:
            user = User(
                email=email,
                password_hash=password_hash,
                name=name or None,
                onboarding_completed=False,
                email_verified=False,
                tenant_id=None,
            )
            db.add(user)
            db.flush()
            return UserPublic.model_validate(user)
