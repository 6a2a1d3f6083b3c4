from loguru import logger

from src.catalog.core.models.session import UserSession
from src.catalog.core.security import generate_secure_token
from src.catalog.core.storage.session_storage import SessionStorage


def _key(session_id: str) -> str:
    return f"user:{session_id}"


class UserSessionService:
    """Service for managing server-side login sessions."""

    def __init__(self, session_storage: SessionStorage, session_max_age: int) -> None:
        self._storage = session_storage
        self._session_max_age = session_max_age

    async def create_user_session(self, user_id: str, client_fingerprint: str) -> str:
        """Create a session for a freshly authenticated user.

        Args:
            user_id: Internal user ID
            client_fingerprint: Hashed client fingerprint

        Returns:
            Session ID
        """
        user_session = UserSession.create(
            session_id=generate_secure_token(),
            user_id=user_id,
            client_fingerprint=client_fingerprint,
            session_max_age=self._session_max_age,
        )
        await self._storage.set(
            _key(user_session.id), user_session, self._session_max_age
        )
        return user_session.id

    async def get_user_session(self, session_id: str) -> UserSession | None:
        """Get user session by ID, refreshing its last access time.

        Returns:
            User session or None if not found/expired
        """
        user_session = await self._storage.get(_key(session_id), UserSession)
        if not user_session:
            return None

        if user_session.is_expired():
            await self._storage.delete(_key(session_id))
            return None

        user_session.update_access()
        remaining = max(user_session.expires_at - user_session.last_accessed_at, 1)
        await self._storage.set(_key(user_session.id), user_session, remaining)
        return user_session

    async def validate_user_session(
        self,
        session_id: str,
        client_fingerprint: str | None,
    ) -> UserSession | None:
        """Load a session and check it belongs to the calling client.

        Args:
            session_id: Session identifier
            client_fingerprint: Hashed fingerprint of the current request, or
                None to skip the binding check

        Returns:
            Valid user session or None if validation fails
        """
        user_session = await self.get_user_session(session_id)
        if not user_session:
            return None

        if (
            client_fingerprint is not None
            and client_fingerprint != user_session.client_fingerprint
        ):
            logger.warning(
                "Session fingerprint mismatch for user {}; dropping session",
                user_session.user_id,
            )
            await self.delete_user_session(session_id)
            return None

        return user_session

    async def delete_user_session(self, session_id: str) -> None:
        await self._storage.delete(_key(session_id))

    async def purge_expired(self) -> int:
        """Drop expired sessions from backends that do not expire keys themselves."""
        return await self._storage.cleanup_expired()
