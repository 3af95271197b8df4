"""Session Service - login state and last working context."""

import logging
from typing import Optional

from vocab_forge.core import DatasetContext, User, ValidationError
from vocab_forge.core.languages import DEFAULT_LANGUAGE
from vocab_forge.io import LocalCache, RemoteGateway
from vocab_forge.io.local_cache import KEY_CONTEXT, KEY_SESSION

logger = logging.getLogger(__name__)


class SessionService:
    """Holds the signed-in user and persists it across restarts."""

    def __init__(self, remote: RemoteGateway, cache: LocalCache) -> None:
        self._remote = remote
        self._cache = cache
        self.current_user: Optional[User] = None

    def login(self, username: str, password: str) -> User:
        """
        Authenticate against the remote API and persist the session.

        Raises:
            AuthenticationError: If the credentials are rejected.
            RemoteUnavailableError: If the server cannot be reached.
        """
        user = self._remote.login(username, password)
        self._cache.put_json(KEY_SESSION, user.to_dict())
        self.current_user = user
        logger.info("Signed in as %s (%s)", user.username, user.role.value)
        return user

    def logout(self) -> None:
        self._cache.delete(KEY_SESSION)
        self.current_user = None

    def restore_session(self) -> Optional[User]:
        """Reload the persisted user, dropping it if the record is unreadable."""
        raw = self._cache.get_json(KEY_SESSION)
        if not isinstance(raw, dict):
            return None
        try:
            self.current_user = User.from_dict(raw)
        except ValidationError as e:
            logger.warning("Discarding invalid stored session: %s", e)
            self._cache.delete(KEY_SESSION)
            return None
        return self.current_user

    def save_context(self, context: DatasetContext) -> None:
        self._cache.put_json(
            KEY_CONTEXT,
            {"appName": context.app_name, "langCode": context.target_language},
        )

    def last_context(self) -> Optional[DatasetContext]:
        raw = self._cache.get_json(KEY_CONTEXT)
        if not isinstance(raw, dict) or not raw.get("appName"):
            return None
        return DatasetContext(
            app_name=str(raw["appName"]),
            target_language=str(raw.get("langCode") or DEFAULT_LANGUAGE),
        )
