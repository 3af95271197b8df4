"""Shared fixtures: Qt application, in-memory remote API fake and catalog wiring."""

import copy
import json
import uuid
from typing import Any, Dict, List, Optional, Sequence

import pytest
from PySide6.QtCore import QCoreApplication

from vocab_forge.core import (
    AppDefinition,
    AuthenticationError,
    DatasetContext,
    PermissionMap,
    RemoteUnavailableError,
    Role,
    User,
    ValidationError,
)
from vocab_forge.io import LocalCache
from vocab_forge.services import CatalogStore, IdentityAllocator


class FakeRemoteGateway:
    """In-memory stand-in for the persistence API.

    Behaves like the real server: creation ignores client ids, assigns
    ``intId`` from the current max, and stores translation maps JSON-encoded.
    ``offline`` fails every call; ``reject_writes`` fails only writes.
    """

    def __init__(self) -> None:
        self.records: List[Dict[str, Any]] = []
        self.apps: List[AppDefinition] = []
        self.users: Dict[str, tuple] = {}
        self.offline = False
        self.reject_writes = False
        self.calls: List[str] = []

    def _check(self, call: str, write: bool = False) -> None:
        self.calls.append(call)
        if self.offline or (write and self.reject_writes):
            raise RemoteUnavailableError(f"{call}: remote unavailable")

    def seed(self, **fields: Any) -> Dict[str, Any]:
        """Insert a record directly, as if another client had created it."""
        record = {
            "id": fields.pop("id", str(uuid.uuid4())),
            "intId": fields.pop("intId", self._max_int_id() + 1),
            "appName": fields.pop("appName", "LingoDeer"),
            "targetLang": fields.pop("targetLang", "es"),
            "status": fields.pop("status", "pending"),
            "translations": json.dumps(fields.pop("translations", {})),
            "exampleTranslations": json.dumps(fields.pop("exampleTranslations", {})),
        }
        record.update(fields)
        self.records.append(record)
        return copy.deepcopy(record)

    def add_user(self, user: User, password: str) -> None:
        self.users[user.username] = (password, user)

    def login(self, username: str, password: str) -> User:
        self._check("login")
        entry = self.users.get(username)
        if entry is None or entry[0] != password:
            raise AuthenticationError("Invalid credentials")
        return entry[1]

    def list_apps(self) -> List[AppDefinition]:
        self._check("list_apps")
        return list(self.apps)

    def create_app(self, name: str) -> AppDefinition:
        self._check("create_app", write=True)
        if any(app.matches(name) for app in self.apps):
            raise ValidationError(f"App name already exists: {name}")
        app = AppDefinition(id=str(uuid.uuid4()), name=name)
        self.apps.append(app)
        return app

    def list_items(self, app_name: Optional[str] = None) -> List[Dict[str, Any]]:
        self._check("list_items")
        return [
            copy.deepcopy(record)
            for record in self.records
            if app_name is None or record.get("appName") == app_name
        ]

    def create_items(self, records: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        self._check("create_items", write=True)
        next_id = self._max_int_id() + 1
        created = []
        for record in records:
            stored = copy.deepcopy(dict(record))
            stored["id"] = str(uuid.uuid4())
            stored["intId"] = next_id
            stored["translations"] = json.dumps(record.get("translations") or {})
            stored["exampleTranslations"] = json.dumps(record.get("exampleTranslations") or {})
            next_id += 1
            self.records.append(stored)
            created.append(copy.deepcopy(stored))
        return created

    def update_item(self, item_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._check("update_item", write=True)
        for index, existing in enumerate(self.records):
            if existing["id"] == item_id:
                self.records[index] = copy.deepcopy(dict(record))
                return copy.deepcopy(self.records[index])
        raise RemoteUnavailableError(f"PUT /vocab/{item_id} returned HTTP 404", status_code=404)

    def delete_items(self, ids: Sequence[str]) -> List[Dict[str, Any]]:
        self._check("delete_items", write=True)
        id_set = set(ids)
        self.records = [record for record in self.records if record["id"] not in id_set]
        return [copy.deepcopy(record) for record in self.records]

    def close(self) -> None:
        pass

    def record(self, item_id: str) -> Optional[Dict[str, Any]]:
        return next((r for r in self.records if r["id"] == item_id), None)

    def _max_int_id(self) -> int:
        return max((int(r.get("intId") or 0) for r in self.records), default=0)


@pytest.fixture(scope="session", autouse=True)
def qt_app():
    """Signals and the thread pool need a Qt application instance."""
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


@pytest.fixture
def fake_remote():
    return FakeRemoteGateway()


@pytest.fixture
def cache():
    """In-memory local cache with its schema created."""
    local = LocalCache(":memory:")
    local.ensure_schema()
    yield local
    local.close()


@pytest.fixture
def allocator(cache):
    return IdentityAllocator(cache)


@pytest.fixture
def store(fake_remote, cache, allocator):
    return CatalogStore(remote=fake_remote, cache=cache, allocator=allocator)


@pytest.fixture
def context():
    return DatasetContext(app_name="LingoDeer", target_language="es")


@pytest.fixture
def admin():
    return User(id="admin-1", username="admin", role=Role.ADMIN)


@pytest.fixture
def editor():
    """Editor allowed to edit common fields and Spanish in LingoDeer."""
    return User(
        id="editor-1",
        username="editor",
        role=Role.EDITOR,
        permissions=PermissionMap({"LingoDeer": ["common", "es"]}),
    )
