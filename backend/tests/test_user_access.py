import pytest

from fadtrack.api.deps import authenticate, authorize
from fadtrack.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ResourceAlreadyExistsError,
    UserDisabledError,
)
from fadtrack.core.security import create_access_token
from fadtrack.schemas.user import UserCreate, UserRole, UserUpdate
from fadtrack.services.token_service import token_service
from fadtrack.services.user_service import user_service


def test_create_user_rejects_duplicate_username(db, make_user):
    make_user()
    with pytest.raises(ResourceAlreadyExistsError):
        user_service.create_user(db, UserCreate(username="alice", password="another1"))


def test_list_users_filters_and_counts(db, make_user):
    make_user("alice")
    make_user("bob", role=UserRole.ADMIN)
    make_user("carol", role=UserRole.EXTERNAL)

    users, total = user_service.list_users(db, role="ADMIN")
    assert total == 1
    assert users[0].username == "bob"

    users, total = user_service.list_users(db, q="AL")
    assert total == 1
    assert users[0].username == "alice"

    users, total = user_service.list_users(db, page=2, page_size=2)
    assert total == 3
    assert len(users) == 1


def test_update_user_reports_changed_fields_and_ignores_blank_password(db, make_user):
    user = make_user()
    old_hash = user.password_hash

    updated, fields = user_service.update_user(db, user.id, UserUpdate(role=UserRole.ADMIN, password="  "))

    assert fields == ["role"]
    assert updated.role == "ADMIN"
    assert updated.password_hash == old_hash


def test_update_user_can_change_password(db, make_user):
    user = make_user()
    user_service.update_user(db, user.id, UserUpdate(password="newsecret"))

    assert token_service.login(db, "alice", "newsecret").user.id == user.id


def test_authenticate_resolves_active_user(db, make_user):
    user = make_user()
    access, _ = token_service.issue_token_pair(db, user)

    assert authenticate(db, access).id == user.id


def test_authenticate_rejects_missing_and_wrong_tokens(db, make_user):
    user = make_user()
    _, refresh = token_service.issue_token_pair(db, user)

    with pytest.raises(AuthenticationError):
        authenticate(db, None)
    with pytest.raises(AuthenticationError):
        authenticate(db, refresh)
    with pytest.raises(AuthenticationError):
        authenticate(db, create_access_token({"sub": "missing-user", "role": "ADMIN"}))


def test_authenticate_rejects_deactivated_user(db, make_user):
    user = make_user()
    access, _ = token_service.issue_token_pair(db, user)
    user_service.deactivate_user(db, user.id)

    with pytest.raises(UserDisabledError):
        authenticate(db, access)


def test_authorize_checks_role(db, make_user):
    user = make_user()
    admin = make_user("root", role=UserRole.ADMIN)

    assert authorize(admin, ["ADMIN"]) is admin
    assert authorize(user, [UserRole.ADMIN, UserRole.USER]) is user
    with pytest.raises(AuthorizationError):
        authorize(user, ["ADMIN"])
