"""Sign-in and user provisioning."""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from src.catalog.core.errors import AuthenticationError, ValidationError
from src.catalog.core.security import hash_password, verify_password
from src.catalog.entities.core.user import User, UserRepository

# Checked against when the e-mail is unknown so both failure paths cost a bcrypt round
_DUMMY_HASH = "$2b$12$C6UzMDM.H6dfI/f/IKcEeO5qTHyZrb0pBQ9F4r9QFqEKUeZ7bgG2u"


class UserService:
    def __init__(self, db_session: Session) -> None:
        self._db_session = db_session
        self._user_repo = UserRepository(db_session)

    def list_users(self) -> list[User]:
        return self._user_repo.list_all()

    def find_by_email(self, email: str) -> User | None:
        return self._user_repo.get_by_email(email)

    def authenticate(self, email: str, password: str) -> User:
        """Return the user owning ``email`` if ``password`` matches.

        Raises:
            AuthenticationError: Unknown e-mail or wrong password.
        """
        user = self._user_repo.get_by_email(email) if email else None
        if user is None:
            verify_password(password, _DUMMY_HASH)
            logger.info("login.failed reason=unknown_email")
            raise AuthenticationError("Credenciais inválidas.")

        if not verify_password(password, user.password_hash):
            logger.info("login.failed reason=bad_password user_id={}", user.id)
            raise AuthenticationError("Credenciais inválidas.")

        logger.info("login.succeeded user_id={}", user.id)
        return user

    def register(
        self,
        email: str,
        password: str,
        roles: list[str] | None = None,
        verified: bool = False,
    ) -> User:
        """Create a user and commit it.

        Raises:
            ValidationError: The e-mail is already taken or the password is empty.
        """
        if not password:
            raise ValidationError.for_field("password", "Informe a senha.")
        if self._user_repo.get_by_email(email) is not None:
            raise ValidationError.for_field("email", "E-mail já cadastrado.")

        user = User(
            email=email,
            password_hash=hash_password(password),
            verified=verified,
            roles=list(roles or []),
        )
        try:
            created = self._user_repo.create(user)
            self._db_session.commit()
        except IntegrityError as e:
            self._db_session.rollback()
            raise ValidationError.for_field("email", "E-mail já cadastrado.") from e

        logger.info("user.created user_id={} roles={}", created.id, created.roles)
        return created
