"""User, role and permission-map entities."""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Iterator, Mapping, Optional

from vocab_forge.core.errors import ValidationError
from vocab_forge.core.languages import LANGUAGE_CODES

COMMON = "common"

VALID_SCOPES = LANGUAGE_CODES | {COMMON}


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"


class PermissionMap(Mapping[str, FrozenSet[str]]):
    """Immutable mapping of app name -> granted scopes.

    A scope is either a supported language code or ``common`` (non-language
    metadata: script, part of speech, media). Scopes are validated here, so
    an unknown scope fails at construction rather than silently denying.
    """

    def __init__(self, grants: Optional[Mapping[str, Iterable[str]]] = None) -> None:
        validated: Dict[str, FrozenSet[str]] = {}
        for app_name, scopes in (grants or {}).items():
            if not isinstance(app_name, str) or not app_name.strip():
                raise ValidationError("Permission app name must be a non-empty string")
            if isinstance(scopes, str):
                raise ValidationError(f"Scopes for '{app_name}' must be a collection, not a string")
            scope_set = frozenset(scopes)
            unknown = scope_set - VALID_SCOPES
            if unknown:
                raise ValidationError(
                    f"Unknown permission scope(s) for '{app_name}': {sorted(unknown)}"
                )
            validated[app_name] = scope_set
        self._grants = validated

    def __getitem__(self, app_name: str) -> FrozenSet[str]:
        return self._grants[app_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._grants)

    def __len__(self) -> int:
        return len(self._grants)

    def __repr__(self) -> str:
        return f"PermissionMap({ {k: sorted(v) for k, v in self._grants.items()} })"

    def to_dict(self) -> Dict[str, list]:
        return {app: sorted(scopes) for app, scopes in self._grants.items()}


@dataclass(frozen=True)
class User:
    id: str
    username: str
    role: Role
    permissions: PermissionMap = field(default_factory=PermissionMap)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "User":
        """Build a User from an API or cached payload.

        The permissions value may arrive JSON-encoded or as a mapping.

        Raises:
            ValidationError: If the role or any scope is invalid.
        """
        permissions = raw.get("permissions") or {}
        if isinstance(permissions, str):
            try:
                permissions = json.loads(permissions) if permissions.strip() else {}
            except json.JSONDecodeError as e:
                raise ValidationError(f"Malformed permissions payload: {e}") from e
        try:
            role = Role(str(raw.get("role", "")).lower())
        except ValueError as e:
            raise ValidationError(f"Unknown role: {raw.get('role')!r}") from e
        return cls(
            id=str(raw.get("id") or ""),
            username=str(raw.get("username") or ""),
            role=role,
            permissions=PermissionMap(permissions),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "role": self.role.value,
            "permissions": self.permissions.to_dict(),
        }

