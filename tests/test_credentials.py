import pytest

from soilsense.core.errors import DuplicateEmail, InvalidRequest
from soilsense.models.user import User
from soilsense.services.credentials import hash_secret, verify_secret


def test_hash_verifies_only_the_original_secret():
    hashed = hash_secret("correct horse", rounds=4)

    assert hashed != "correct horse"
    assert verify_secret("correct horse", hashed)
    assert not verify_secret("battery staple", hashed)


def test_malformed_hash_does_not_verify():
    assert not verify_secret("anything", "not-a-bcrypt-hash")


def test_overlong_secret_is_rejected():
    with pytest.raises(InvalidRequest):
        hash_secret("x" * 73, rounds=4)


def test_create_and_find_by_email(credentials):
    user = credentials.create("Ada", "ada@example.com", credentials.hash_secret("pw"))

    found = credentials.find_by_email("ada@example.com")
    assert found.id == user.id
    assert found.name == "Ada"
    assert credentials.find_by_id(user.id).email == "ada@example.com"
    assert credentials.find_by_id(str(user.id)).email == "ada@example.com"


def test_unknown_lookups_return_none(credentials):
    assert credentials.find_by_email("nobody@example.com") is None
    assert credentials.find_by_id("not-a-uuid") is None


def test_duplicate_email_creates_no_second_record(credentials, db_session):
    credentials.create("Ada", "ada@example.com", credentials.hash_secret("pw"))

    with pytest.raises(DuplicateEmail):
        credentials.create("Other Ada", "ada@example.com", credentials.hash_secret("pw2"))

    assert db_session.query(User).filter(User.email == "ada@example.com").count() == 1
