# Credential Store - the single administrator account

import logging

from ..core.config import Settings
from ..core.errors import StorageError, Unauthenticated
from ..core.security import get_password_hash, verify_password
from ..core.storage import USER_DOCUMENT, JsonDocumentStore
from ..core.time_utils import utcnow
from ..models.user import User

logger = logging.getLogger(__name__)


class CredentialStore:
    """Holds the admin identity (username + salted PBKDF2 hash) in user.json."""

    def __init__(self, storage: JsonDocumentStore, settings: Settings):
        self.storage = storage
        self.settings = settings

    def _hash(self, password: str) -> str:
        return get_password_hash(
            password,
            salt_bytes=self.settings.PASSWORD_SALT_BYTES,
            key_bytes=self.settings.PASSWORD_HASH_BYTES,
        )

    def bootstrap(self) -> bool:
        """Seed the admin user if user.json is absent. Returns True when seeded."""
        with self.storage.lock(USER_DOCUMENT):
            if self.storage.exists(USER_DOCUMENT):
                return False
            user = User(
                username=self.settings.ADMIN_USERNAME,
                password_hash=self._hash(self.settings.ADMIN_PASSWORD),
                updated_at=utcnow(),
            )
            self.storage.write(USER_DOCUMENT, user.to_document())

        if self.settings.uses_default_admin():
            logger.warning("Seeded admin account with default credentials; change the password")
        else:
            logger.info(f"Seeded admin account '{user.username}'")
        return True

    def get_user(self) -> User:
        data = self.storage.read(USER_DOCUMENT)
        try:
            return User.model_validate(data)
        except ValueError as e:
            raise StorageError("User document is corrupt") from e

    def verify(self, username: str, password: str) -> bool:
        user = self.get_user()
        if user.username != username:
            return False
        return verify_password(password, user.password_hash)

    def rotate(self, current_password: str, new_password: str) -> User:
        with self.storage.lock(USER_DOCUMENT):
            user = self.get_user()
            if not verify_password(current_password, user.password_hash):
                raise Unauthenticated("Current password is incorrect")

            user.password_hash = self._hash(new_password)
            user.updated_at = utcnow()
            self.storage.write(USER_DOCUMENT, user.to_document())

        logger.info(f"Password rotated for '{user.username}'")
        return user
