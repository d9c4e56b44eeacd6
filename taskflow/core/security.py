import re
import secrets
import string

from passlib.context import CryptContext

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

TEMP_PASSWORD_ALPHABET = string.ascii_lowercase + string.digits
TEMP_PASSWORD_LENGTH = 10

_PASSWORD_RULE = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        # unrecognised hash format
        return False


def is_strong_password(password: str) -> bool:
    """At least 8 characters with an uppercase letter, a lowercase letter and a digit."""
    return bool(_PASSWORD_RULE.match(password))


def generate_temporary_password(length: int = TEMP_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(TEMP_PASSWORD_ALPHABET) for _ in range(length))
