import pytest

from backend.app.core.permissions import get_role_permissions
from backend.app.core.security import (
    create_access_token,
    decode_access_token,
    get_password_hash,
    verify_password,
)


def test_password_hashing_not_plain():
    plain = "password123"
    hashed = get_password_hash(plain)
    assert hashed and hashed != plain


def test_verify_password():
    hashed = get_password_hash("secret")
    assert verify_password("secret", hashed)
    assert not verify_password("wrong", hashed)


def test_create_and_decode_token_contains_claims():
    token = create_access_token("user-1", role="sales_rep", kind="mobile", extra_claims={"company_id": "c-1"})
    payload = decode_access_token(token)
    assert payload["sub"] == "user-1"
    assert payload["role"] == "sales_rep"
    assert payload["kind"] == "mobile"
    assert payload["company_id"] == "c-1"
    assert "exp" in payload


def test_expired_token_raises_value_error():
    token = create_access_token("expired", expires_minutes=-1)
    with pytest.raises(ValueError, match="Expired token"):
        decode_access_token(token)


def test_invalid_token_raises_value_error():
    with pytest.raises(ValueError, match="Invalid token"):
        decode_access_token("invalid.token.value")


def test_role_permissions():
    assert "manage_users" in get_role_permissions("owner")
    assert get_role_permissions("canvasser") == ["view_leads", "create_leads"]
    assert get_role_permissions("unknown") == []
    assert get_role_permissions(None) == []
