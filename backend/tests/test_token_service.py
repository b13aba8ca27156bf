import pytest

from fadtrack.core.exceptions import InvalidCredentialsError, InvalidRefreshTokenError, UserDisabledError
from fadtrack.core.security import decode_access_token, decode_refresh_token
from fadtrack.models.security import RefreshSession
from fadtrack.services.token_service import TokenService, token_service
from fadtrack.services.user_service import user_service


def _session_id(refresh_token):
    return decode_refresh_token(refresh_token)["jti"]


def test_login_opens_one_active_session(db, make_user):
    user = make_user()

    result = token_service.login(db, "alice", "secret1")

    assert result.user.id == user.id
    assert decode_access_token(result.access_token)["sub"] == user.id
    sessions = db.query(RefreshSession).filter(RefreshSession.user_id == user.id).all()
    assert len(sessions) == 1
    assert sessions[0].id == _session_id(result.refresh_token)
    assert sessions[0].revoked is False
    assert result.user.last_login is not None


def test_login_does_not_reveal_which_credential_was_wrong(db, make_user):
    make_user()

    with pytest.raises(InvalidCredentialsError) as unknown:
        token_service.login(db, "nobody", "secret1")
    with pytest.raises(InvalidCredentialsError) as wrong:
        token_service.login(db, "alice", "wrong-password")

    assert unknown.value.message == wrong.value.message
    assert db.query(RefreshSession).count() == 0


def test_login_refused_for_inactive_user(db, make_user):
    user = make_user()
    user_service.deactivate_user(db, user.id)

    with pytest.raises(UserDisabledError):
        token_service.login(db, "alice", "secret1")


def test_rotation_revokes_old_session_and_links_successor(db, make_user):
    make_user()
    first = token_service.login(db, "alice", "secret1")

    user, access, refresh = token_service.rotate_refresh_token(db, first.refresh_token)

    old = db.get(RefreshSession, _session_id(first.refresh_token))
    db.refresh(old)
    assert old.revoked is True
    assert old.revoked_at is not None
    assert old.replaced_by_id == _session_id(refresh)
    assert refresh != first.refresh_token
    assert decode_access_token(access)["sub"] == user.id


def test_replayed_refresh_token_is_rejected(db, make_user):
    make_user()
    first = token_service.login(db, "alice", "secret1")
    token_service.rotate_refresh_token(db, first.refresh_token)

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, first.refresh_token)


def test_chain_of_refreshes_leaves_one_active_session(db, make_user):
    user = make_user()
    result = token_service.login(db, "alice", "secret1")
    first_id = _session_id(result.refresh_token)

    token = result.refresh_token
    for _ in range(4):
        _, _, token = token_service.rotate_refresh_token(db, token)

    sessions = db.query(RefreshSession).filter(RefreshSession.user_id == user.id).all()
    assert len(sessions) == 5
    active = [s for s in sessions if not s.revoked]
    assert [s.id for s in active] == [_session_id(token)]

    chain = token_service.session_chain(db, first_id)
    assert len(chain) == 5
    assert chain[0].id == first_id
    assert chain[-1].id == _session_id(token)
    assert chain[-1].replaced_by_id is None


def test_revoke_is_idempotent(db, make_user):
    make_user()
    result = token_service.login(db, "alice", "secret1")

    assert token_service.revoke_refresh_token(db, result.refresh_token) is True
    assert token_service.revoke_refresh_token(db, result.refresh_token) is False
    assert token_service.revoke_refresh_token(db, "not-a-jwt") is False

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, result.refresh_token)


def test_access_token_is_not_a_refresh_token(db, make_user):
    make_user()
    result = token_service.login(db, "alice", "secret1")

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, result.access_token)


def test_deactivation_revokes_every_session(db, make_user):
    user = make_user()
    first = token_service.login(db, "alice", "secret1")
    second = token_service.login(db, "alice", "secret1")

    user_service.deactivate_user(db, user.id)

    assert db.query(RefreshSession).filter(RefreshSession.revoked == False).count() == 0  # noqa: E712
    for result in (first, second):
        with pytest.raises(InvalidRefreshTokenError):
            token_service.rotate_refresh_token(db, result.refresh_token)


def test_unknown_session_is_rejected(db, make_user):
    user = make_user()
    _, refresh = token_service.issue_token_pair(db, user)
    db.query(RefreshSession).delete()
    db.commit()

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, refresh)


def test_lost_refresh_race_rolls_back_successor(database, db, make_user, monkeypatch):
    user = make_user()
    first = token_service.login(db, "alice", "secret1")
    create_session = TokenService._new_session
    raced = []

    def rotate_elsewhere_first(session, user_id):
        if not raced:
            raced.append(True)
            other = database.session()
            try:
                raced.append(token_service.rotate_refresh_token(other, first.refresh_token))
            finally:
                other.close()
        return create_session(session, user_id)

    monkeypatch.setattr(TokenService, "_new_session", staticmethod(rotate_elsewhere_first))

    with pytest.raises(InvalidRefreshTokenError):
        token_service.rotate_refresh_token(db, first.refresh_token)

    winner_refresh = raced[1][2]
    sessions = db.query(RefreshSession).filter(RefreshSession.user_id == user.id).all()
    assert len(sessions) == 2
    assert [s.id for s in sessions if not s.revoked] == [_session_id(winner_refresh)]
