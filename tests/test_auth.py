import pytest

from booking_backend.auth_security import create_access_token, get_user_id, hash_password, verify_password
from booking_backend.auth_service import authenticate, create_user
from booking_backend.errors import ValidationError


def test_password_hash_roundtrip():
    h = hash_password("secret123")
    assert h != "secret123"
    assert verify_password("secret123", h)
    assert not verify_password("other", h)


def test_token_carries_user_id():
    assert get_user_id(create_access_token(7)) == 7


def test_garbage_token_has_no_user():
    assert get_user_id("abc.def.ghi") is None


def test_create_user_normalizes_email(users):
    u = create_user(users, " Carla ", " CARLA@test.com ", "secret123", provider=True)
    assert u.name == "Carla"
    assert u.email == "carla@test.com"
    assert u.provider is True


def test_create_user_rejects_duplicate(users, customer):
    with pytest.raises(ValidationError):
        create_user(users, "Ana", "ana@test.com", "secret123")


def test_authenticate(users, customer):
    assert authenticate(users, "ANA@test.com", "secret123").id == customer.id
    assert authenticate(users, "ana@test.com", "nope") is None
    assert authenticate(users, "nobody@test.com", "secret123") is None
