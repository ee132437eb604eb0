import logging

from passlib.context import CryptContext

from eventease.constant_file import password_hash_iterations

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["pbkdf2_sha256"],
    deprecated="auto",
    pbkdf2_sha256__default_rounds=password_hash_iterations,
)


def encrypt_password(password: str):
    return pwd_context.hash(password)


def verify_password(plain_password, hashed_password):
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (ValueError, TypeError) as e:
        logger.warning(f"Unreadable password hash: {e}")
        return False
