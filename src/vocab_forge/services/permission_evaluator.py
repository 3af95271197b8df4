"""Permission Evaluator - field-level edit rights per app and scope.

This is a client-side guard only. The remote API does not re-check scopes on
PUT or DELETE, so a client that skips this evaluator can write anything.
"""

from typing import FrozenSet, Optional

from vocab_forge.core import COMMON, PermissionDeniedError, User, ValidationError
from vocab_forge.core.languages import LANGUAGE_CODES
from vocab_forge.core.user import VALID_SCOPES

# Fields whose values are keyed by language; every other field is "common".
LANGUAGE_KEYED_FIELDS = frozenset({"translations", "example_translations"})

ALL_SCOPES: FrozenSet[str] = frozenset(VALID_SCOPES)


class PermissionEvaluator:
    """Answers whether a user may mutate a field in an (app, scope)."""

    def can_edit(self, user: Optional[User], app_name: str, scope: str) -> bool:
        """Admins always pass; editors pass iff the app grants the scope."""
        if user is None:
            return False
        if user.is_admin:
            return True
        granted = user.permissions.get(app_name)
        return granted is not None and scope in granted

    def editable_scopes(self, user: Optional[User], app_name: str) -> FrozenSet[str]:
        if user is None:
            return frozenset()
        if user.is_admin:
            return ALL_SCOPES
        return user.permissions.get(app_name, frozenset())

    @staticmethod
    def scope_for_field(field_name: str, language: Optional[str] = None) -> str:
        """Map an item field (and language key, for map fields) to its scope.

        Raises:
            ValidationError: If a language-keyed field is given no valid language.
        """
        if field_name in LANGUAGE_KEYED_FIELDS:
            if language not in LANGUAGE_CODES:
                raise ValidationError(
                    f"Field '{field_name}' needs a supported language, got {language!r}"
                )
            return language
        return COMMON

    def require(self, user: Optional[User], app_name: str, scope: str) -> None:
        if not self.can_edit(user, app_name, scope):
            who = user.username if user else "anonymous"
            raise PermissionDeniedError(
                f"{who} may not edit scope '{scope}' in app '{app_name}'", scope=scope
            )

    @staticmethod
    def require_admin(user: Optional[User], action: str) -> None:
        """Guard admin-only actions (import, delete, processing, text regeneration)."""
        if user is None or not user.is_admin:
            raise PermissionDeniedError(f"Only administrators can {action}")
