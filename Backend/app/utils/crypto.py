import base64
import hashlib
from functools import lru_cache

from cryptography.fernet import Fernet, InvalidToken

from app.config import APP_SECRET_KEY


@lru_cache(maxsize=1)
def _fernet() -> Fernet:
    key32 = hashlib.sha256(APP_SECRET_KEY.encode("utf-8")).digest()
    return Fernet(base64.urlsafe_b64encode(key32))


def encrypt_secret(plaintext: str) -> str:
    """Encrypt an OAuth credential before it is written to the database."""
    return _fernet().encrypt(plaintext.encode("utf-8")).decode("utf-8")


def decrypt_secret(ciphertext: str) -> str:
    """
    Reverse of encrypt_secret. Raises ValueError when the value was written
    under a different APP_SECRET_KEY.
    """
    try:
        return _fernet().decrypt(ciphertext.encode("utf-8")).decode("utf-8")
    except InvalidToken as e:
        raise ValueError("Stored credential cannot be decrypted with the current key") from e
