"""HTTP gateway to the authoritative vocabulary persistence API."""

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from vocab_forge.core import (
    AppDefinition,
    AuthenticationError,
    RemoteUnavailableError,
    User,
    ValidationError,
)

logger = logging.getLogger(__name__)


class RemoteGateway:
    """Thin JSON client for the persistence API.

    Every transport problem (connection error, timeout, non-2xx status) is
    raised as ``RemoteUnavailableError`` so the store can fall back to its
    local tier. The only statuses given a different meaning are 401 on login
    and 400 on app creation, which are caller errors rather than outages.

    Records are returned as plain dictionaries; normalization is the store's
    job.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            headers={"Accept": "application/json"},
        )

    # --- auth ---

    def login(self, username: str, password: str) -> User:
        """Authenticate and return the user profile.

        Raises:
            AuthenticationError: On 401.
            RemoteUnavailableError: On any other failure.
        """
        try:
            response = self._client.post(
                "/auth/login", json={"username": username, "password": password}
            )
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"Login request failed: {e}") from e
        if response.status_code == 401:
            raise AuthenticationError("Invalid credentials")
        return User.from_dict(self._json(response, "POST /auth/login"))

    # --- apps ---

    def list_apps(self) -> List[AppDefinition]:
        data = self._request("GET", "/apps")
        return [AppDefinition.from_dict(raw) for raw in self._as_list(data, "GET /apps")]

    def create_app(self, name: str) -> AppDefinition:
        """Create an app definition.

        Raises:
            ValidationError: If the server rejects the name (duplicate).
            RemoteUnavailableError: On transport failure.
        """
        try:
            response = self._client.post("/apps", json={"name": name})
        except httpx.HTTPError as e:
            raise RemoteUnavailableError(f"POST /apps failed: {e}") from e
        if response.status_code == 400:
            raise ValidationError(f"App name already exists: {name}")
        return AppDefinition.from_dict(self._json(response, "POST /apps"))

    # --- vocabulary ---

    def list_items(self, app_name: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"appName": app_name} if app_name else None
        data = self._request("GET", "/vocab", params=params)
        return self._as_list(data, "GET /vocab")

    def create_items(self, records: Sequence[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Create items; the server assigns ``intId`` sequentially from its current max."""
        data = self._request("POST", "/vocab", json=list(records))
        return self._as_list(data, "POST /vocab")

    def update_item(self, item_id: str, record: Dict[str, Any]) -> Dict[str, Any]:
        data = self._request("PUT", f"/vocab/{item_id}", json=record)
        if not isinstance(data, dict):
            raise RemoteUnavailableError(f"PUT /vocab/{item_id} returned a non-object body")
        return data

    def delete_items(self, ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Delete by id; the server answers with the full remaining catalog."""
        data = self._request("DELETE", "/vocab", json={"ids": list(ids)})
        return self._as_list(data, "DELETE /vocab")

    def close(self) -> None:
        self._client.close()

    # --- helpers ---

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        label = f"{method} {path}"
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            logger.debug("%s transport error: %s", label, e)
            raise RemoteUnavailableError(f"{label} failed: {e}") from e
        return self._json(response, label)

    @staticmethod
    def _json(response: httpx.Response, label: str) -> Any:
        if response.status_code >= 400:
            raise RemoteUnavailableError(
                f"{label} returned HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as e:
            raise RemoteUnavailableError(f"{label} returned invalid JSON: {e}") from e

    @staticmethod
    def _as_list(data: Any, label: str) -> List[Any]:
        if not isinstance(data, list):
            raise RemoteUnavailableError(f"{label} returned a non-list body")
        return data
