import pytest

from app.routes.auth import _is_valid_email, _is_valid_password


@pytest.mark.parametrize(
    "email,expected",
    [
        ("user@example.com", True),
        ("User.Name+tag@example.co.uk", True),
        ("  user@example.com  ", True),  # trims spaces
        ("bademail", False),
        ("", False),
        ("user@no-tld", False),
        ("user @example.com", False),
        ("@gmail.com", False),
        ("user@xn--exmple-cua.com", False),
        ("user..name@example.com", False),
        ("user@.example.com", False),
    ],
)
def test_is_valid_email(email: str, expected: bool):
    assert _is_valid_email(email) is expected


@pytest.mark.parametrize(
    "pw,expected",
    [
        ("Passw0rd", True),
        ("Abcdef12", True),       # exactly 8 chars
        ("A" * 23 + "1a", True),  # 25 chars
        ("short1", False),
        ("  Passw0rd  ", False),  # whitespace not allowed
        ("pass word1", False),
        ("lettersOnly", False),
        ("12345678", False),
        ("", False),
        ("a" * 26 + "1", False),  # too long
        ("a1" + "\U0001F600" * 18, False),  # 20 chars but 74 bytes
    ],
)
def test_is_valid_password(pw: str, expected: bool):
    assert _is_valid_password(pw) is expected
