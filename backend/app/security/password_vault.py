import base64

from cryptography.fernet import Fernet


class PasswordVault:
    """Seals account passwords at rest when an encryption key is configured."""

    def __init__(self, raw_key: str | None):
        self._cipher = None

        if raw_key:
            key = raw_key.encode("utf-8")
            # Fernet wants a URL-safe base64 encoded 32-byte key.
            if len(key) != 44:
                key = base64.urlsafe_b64encode(raw_key.encode("utf-8").ljust(32, b"0")[:32])
            self._cipher = Fernet(key)

    @property
    def enabled(self) -> bool:
        return self._cipher is not None

    def seal(self, password: str) -> str:
        if not self._cipher:
            return password
        return self._cipher.encrypt(password.encode("utf-8")).decode("utf-8")

