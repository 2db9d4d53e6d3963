"""Marathon scheduler client.

Only the ``labels`` field of an app is interpreted here; every other field
is carried through untouched.
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

from common.errors import ConflictError, UpstreamError
from common.http_client import ServiceClient

logger = logging.getLogger(__name__)


class App:
    """A scheduler app definition backed by its raw JSON document."""

    def __init__(self, payload: Optional[Dict[str, Any]] = None):
        self.payload: Dict[str, Any] = payload if payload is not None else {}

    @classmethod
    def from_json(cls, app_json: str) -> "App":
        """Parse a rendered manifest into an App."""
        try:
            payload = json.loads(app_json)
        except ValueError as exc:
            raise UpstreamError(
                f"Could not unmarshal marathon json: {exc}", operation="to_app"
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamError("Marathon json must be an object", operation="to_app")
        return cls(payload)

    @property
    def id(self) -> str:  # pylint: disable=invalid-name
        return str(self.payload.get("id") or "")

    @property
    def labels(self) -> Dict[str, str]:
        labels = self.payload.get("labels")
        if not isinstance(labels, dict):
            labels = {}
            self.payload["labels"] = labels
        return labels

    def has_label(self, key: str) -> bool:
        labels = self.payload.get("labels")
        return isinstance(labels, dict) and key in labels

    def label(self, key: str) -> str:
        """Label value or empty string."""
        labels = self.payload.get("labels")
        if isinstance(labels, dict):
            return str(labels.get(key) or "")
        return ""

    def to_dict(self) -> Dict[str, Any]:
        return self.payload

    def __repr__(self) -> str:
        return f"App(id={self.id!r})"


class MarathonClient(ServiceClient):
    """Client for the Marathon v2 apps API."""

    context = "marathon"

    def apps(self) -> List[App]:
        """List every app known to the scheduler."""
        res = self.request("GET", "/v2/apps")
        if res.status_code != 200:
            raise self.error("Could not retrieve apps from Marathon", res, "list_apps", "/v2/apps")
        try:
            data = json.loads(res.text or "{}")
        except ValueError as exc:
            raise UpstreamError(
                f"Could not decode Marathon apps: {exc}", operation="list_apps", target=self.base_url
            ) from exc
        return [App(item) for item in (data.get("apps") or [])]

    def create_app(self, app: App) -> str:
        """Submit ``app``; returns the scheduler's response text.

        Raises:
            ConflictError: The scheduler already runs an app with this id.
            UpstreamError: Any other non-success response.
        """
        body = json.dumps(app.to_dict())
        logger.debug("app json: %s", body)
        res = self.request(
            "POST",
            "/v2/apps",
            data=body,
            headers={"Content-Type": "application/json"},
        )
        if res.status_code == 409:
            raise ConflictError(f"Application {app.id} is already installed")
        if not 200 <= res.status_code < 300:
            raise self.error(f"Could not create app {app.id} in Marathon", res, "create_app", "/v2/apps")
        return res.text or ""

    def destroy_app(self, app_id: str) -> str:
        """Delete the app ``app_id``."""
        if not app_id.startswith("/"):
            app_id = "/" + app_id
        path = "/v2/apps" + app_id
        res = self.request("DELETE", path)
        if not 200 <= res.status_code < 300:
            raise self.error(f"Could not destroy app {app_id} in Marathon", res, "delete_app", path)
        return res.text or ""
