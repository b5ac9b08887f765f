import re

from email_validator import EmailNotValidError, validate_email as check_email

from authcore.libs.result import Error, Result, Return
from .errors import ErrorCode

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_BYTES = 72

USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._-]{3,50}$")
MAX_EMAIL_LENGTH = 100


def validate_password(password: str) -> Result[None]:
    """
    Validate password complexity.

    Rules: at least 8 characters, at most 72 bytes (bcrypt limit), and at
    least one upper-case letter, lower-case letter, digit and special character.
    """
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        return _invalid(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        return _invalid(f"Password must not be longer than {MAX_PASSWORD_BYTES} bytes")

    if not (
        re.search(r"[A-Z]", password)
        and re.search(r"[a-z]", password)
        and re.search(r"\d", password)
        and re.search(r"[^a-zA-Z0-9]", password)
    ):
        return _invalid(
            "Password must contain an upper-case letter, a lower-case letter, "
            "a digit and a special character"
        )

    return Return.ok(None)


def validate_username(username: str) -> Result[None]:
    if not username or not USERNAME_PATTERN.match(username.strip()):
        return _invalid(
            "Username must be 3-50 characters of letters, digits, '.', '_' or '-'"
        )
    return Return.ok(None)


def validate_email(email: str) -> Result[None]:
    if not email or len(email) > MAX_EMAIL_LENGTH:
        return _invalid("Email address is not valid")
    try:
        check_email(email.strip(), check_deliverability=False)
    except EmailNotValidError as exc:
        return _invalid(f"Email address is not valid: {exc}")
    return Return.ok(None)


def _invalid(message: str) -> Result[None]:
    return Return.err(Error(ErrorCode.VALIDATION_ERROR, message))
