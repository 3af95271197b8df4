"""Application (product) definitions that partition the catalog."""

from dataclasses import dataclass
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class AppDefinition:
    """A product whose vocabulary lives in the shared catalog.

    Names are unique case-insensitively.
    """

    id: str
    name: str

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "AppDefinition":
        return cls(id=str(raw.get("id") or ""), name=str(raw.get("name") or ""))

    def to_dict(self) -> Dict[str, str]:
        return {"id": self.id, "name": self.name}

    def matches(self, name: str) -> bool:
        return self.name.strip().lower() == name.strip().lower()
