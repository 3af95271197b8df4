"""App Registry - known application definitions, remote-first with a cached copy."""

import logging
import threading
import uuid
from typing import List

from vocab_forge.core import AppDefinition, RemoteUnavailableError, ValidationError
from vocab_forge.io import LocalCache, RemoteGateway
from vocab_forge.io.local_cache import KEY_APPS

logger = logging.getLogger(__name__)

DEFAULT_APPS = (
    AppDefinition(id="lingodeer", name="LingoDeer"),
    AppDefinition(id="chineseskill", name="ChineseSkill"),
)


class AppRegistry:
    """Lists and creates app definitions.

    The cached list mirrors the last successful remote answer plus any apps
    created while offline. When nothing is known at all the registry is
    seeded with the default apps.
    """

    def __init__(self, remote: RemoteGateway, cache: LocalCache) -> None:
        if remote is None:
            raise ValueError("RemoteGateway must not be None")
        if cache is None:
            raise ValueError("LocalCache must not be None")
        self._remote = remote
        self._cache = cache
        self._lock = threading.Lock()

    def list_apps(self) -> List[AppDefinition]:
        try:
            remote_apps = self._remote.list_apps()
        except RemoteUnavailableError as e:
            logger.warning("Remote app list failed, using cached apps: %s", e)
            return self._cached()

        with self._lock:
            merged = list(remote_apps)
            for app in self._cached_locked():
                if not any(existing.matches(app.name) for existing in merged):
                    merged.append(app)
            self._store_locked(merged)
        return merged

    def create_app(self, name: str) -> AppDefinition:
        """Register a new app name.

        Raises:
            ValidationError: If the name is blank or already taken
                (case-insensitive).
        """
        name = name.strip()
        if not name:
            raise ValidationError("App name must not be empty")
        if any(app.matches(name) for app in self.list_apps()):
            raise ValidationError(f"App name already exists: {name}")

        try:
            app = self._remote.create_app(name)
        except RemoteUnavailableError as e:
            logger.warning("Remote app creation failed, caching %r locally: %s", name, e)
            app = AppDefinition(id=str(uuid.uuid4()), name=name)

        with self._lock:
            apps = [existing for existing in self._cached_locked() if not existing.matches(name)]
            apps.append(app)
            self._store_locked(apps)
        logger.info("Registered app %s", app.name)
        return app

    def ensure_app(self, name: str) -> AppDefinition:
        """Return the app with this name, creating it if needed."""
        for app in self.list_apps():
            if app.matches(name):
                return app
        return self.create_app(name)

    def _cached(self) -> List[AppDefinition]:
        with self._lock:
            return self._cached_locked()

    def _cached_locked(self) -> List[AppDefinition]:
        raw = self._cache.get_json(KEY_APPS)
        if not isinstance(raw, list):
            apps = list(DEFAULT_APPS)
            self._store_locked(apps)
            return apps
        return [AppDefinition.from_dict(entry) for entry in raw if isinstance(entry, dict)]

    def _store_locked(self, apps: List[AppDefinition]) -> None:
        self._cache.put_json(KEY_APPS, [app.to_dict() for app in apps])
