"""Unit tests for sign-in and user registration."""

import pytest
from sqlmodel import Session

from src.catalog.core.errors import AuthenticationError, ValidationError
from src.catalog.core.services import UserService


class TestUserService:
    def test_register_and_authenticate(self, session: Session):
        service = UserService(session)
        created = service.register(
            " Admin@Example.com ", "admin1234", roles=["ROLE_ADMIN"], verified=True
        )

        user = service.authenticate("admin@example.com", "admin1234")

        assert user.id == created.id
        assert user.email == "admin@example.com"
        assert user.roles == ["ROLE_ADMIN"]
        assert user.verified is True
        assert user.password_hash != "admin1234"

    def test_wrong_password(self, session: Session):
        service = UserService(session)
        service.register("user@example.com", "user1234")

        with pytest.raises(AuthenticationError):
            service.authenticate("user@example.com", "wrong")

    def test_unknown_email(self, session: Session):
        with pytest.raises(AuthenticationError):
            UserService(session).authenticate("ghost@example.com", "whatever")

    def test_duplicate_email(self, session: Session):
        service = UserService(session)
        service.register("user@example.com", "user1234")

        with pytest.raises(ValidationError) as exc_info:
            service.register("USER@example.com", "other")

        assert "email" in exc_info.value.errors
        assert len(service.list_users()) == 1

    def test_empty_password_rejected(self, session: Session):
        with pytest.raises(ValidationError) as exc_info:
            UserService(session).register("user@example.com", "")

        assert "password" in exc_info.value.errors

    def test_unverified_users_can_sign_in(self, session: Session):
        service = UserService(session)
        service.register("unverify@example.com", "unverify1234", verified=False)

        user = service.authenticate("unverify@example.com", "unverify1234")

        assert user.verified is False
