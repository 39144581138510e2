import pytest
import jwt
from datetime import datetime, timedelta, timezone

from eventhub.auth_service.models import Identity, User
from eventhub.auth_service.utils import authenticate, create_token, require_role, verify_token_from_request
from eventhub.common.errors import Forbidden, Unauthorized


def make_user(role="admin"):
    return User(id="42", name="Admin A", email="admin@x.com", password_hash="hash", role=role)


def test_create_token():
    token = create_token(make_user())

    assert isinstance(token, str)

    # Decode to verify contents using the same secret
    payload = jwt.decode(token, "test_secret", algorithms=["HS256"])
    assert payload["sub"] == "42"
    assert payload["email"] == "admin@x.com"
    assert payload["role"] == "admin"
    assert payload["exp"] - payload["iat"] == 24 * 60 * 60


def test_authenticate_valid_token():
    identity = authenticate(create_token(make_user()))
    assert identity == Identity(id="42", email="admin@x.com", role="admin")
    assert identity.is_admin


def test_authenticate_missing_token():
    with pytest.raises(Unauthorized):
        authenticate(None)


def test_authenticate_invalid_token():
    with pytest.raises(Forbidden):
        authenticate("invalid.token.here")


def test_authenticate_expired_token():
    past = datetime.now(timezone.utc) - timedelta(hours=25)
    token = jwt.encode(
        {"sub": "42", "email": "admin@x.com", "role": "admin", "iat": past, "exp": past + timedelta(hours=24)},
        "test_secret",
        algorithm="HS256",
    )
    with pytest.raises(Forbidden, match="expired"):
        authenticate(token)


def test_changing_secret_invalidates_tokens(mocker):
    token = create_token(make_user())
    mocker.patch("eventhub.auth_service.utils.JWT_SECRET", "rotated_secret")
    with pytest.raises(Forbidden):
        authenticate(token)


def test_require_role():
    require_role(Identity(id="1", email="a@x.com", role="admin"), "admin")
    with pytest.raises(Forbidden):
        require_role(Identity(id="1", email="a@x.com", role="user"), "admin")


def test_verify_token_from_request_valid(app):
    token = create_token(make_user(role="user"))

    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
        identity = verify_token_from_request()
        assert identity.id == "42"
        assert identity.role == "user"


def test_verify_token_from_request_missing_header(app):
    with app.test_request_context():
        with pytest.raises(Unauthorized):
            verify_token_from_request()


def test_verify_token_from_request_invalid_format(app):
    with app.test_request_context(headers={"Authorization": "InvalidFormat"}):
        # Not a Bearer header, treated as absent
        with pytest.raises(Unauthorized):
            verify_token_from_request()


def test_verify_token_from_request_wrong_role(app):
    token = create_token(make_user(role="user"))

    with app.test_request_context(headers={"Authorization": f"Bearer {token}"}):
        with pytest.raises(Forbidden):
            verify_token_from_request(required_roles=["admin"])
