"""Consul client: key-value store access and catalog service discovery.

The catalog and the pending-install poller only need byte-blob
get/put/list/delete, so that is all this client exposes for KV.
"""
from __future__ import annotations

import base64
import json
import logging
import urllib.parse
from typing import Any, Dict, List, Optional, Tuple

from common.errors import UpstreamError
from common.http_client import ServiceClient

logger = logging.getLogger(__name__)


class ConsulClient(ServiceClient):
    """Thin Consul HTTP API client."""

    context = "consul"

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        verify_ssl: bool = True,
    ):
        super().__init__(url, verify_ssl=verify_ssl)
        self.token = token

    def _kv_path(self, key: str) -> str:
        return "/v1/kv/" + urllib.parse.quote(key.lstrip("/"), safe="/")

    def _headers(self) -> Dict[str, str]:
        return {"X-Consul-Token": self.token} if self.token else {}

    def _kv(self, method: str, key: str, params: Optional[Dict[str, Any]] = None, **kwargs: Any):
        return self.request(
            method,
            self._kv_path(key),
            params=params,
            headers=self._headers(),
            **kwargs,
        )

    def get(self, key: str) -> Optional[bytes]:
        """Return the raw value stored at ``key`` or None when absent."""
        res = self._kv("GET", key, params={"raw": ""})
        if res.status_code == 404:
            return None
        if res.status_code != 200:
            raise self.error(f"Could not get key {key}", res, "kv_get", self._kv_path(key))
        return res.content

    def keys(self, prefix: str, separator: Optional[str] = None) -> List[str]:
        """List key names under ``prefix``; with ``separator`` only one level deep."""
        params: Dict[str, Any] = {"keys": ""}
        if separator:
            params["separator"] = separator
        res = self._kv("GET", prefix, params=params)
        if res.status_code == 404:
            return []
        if res.status_code != 200:
            raise self.error(f"Could not list keys under {prefix}", res, "kv_keys", self._kv_path(prefix))
        try:
            return list(json.loads(res.text or "[]"))
        except ValueError as exc:
            raise UpstreamError(
                f"Could not decode key list under {prefix}: {exc}",
                operation="kv_keys",
                target=prefix,
            ) from exc

    def list(self, prefix: str) -> List[Tuple[str, bytes]]:
        """Return every (key, value) pair under ``prefix``."""
        res = self._kv("GET", prefix, params={"recurse": ""})
        if res.status_code == 404:
            return []
        if res.status_code != 200:
            raise self.error(f"Could not list {prefix}", res, "kv_list", self._kv_path(prefix))
        try:
            entries = json.loads(res.text or "[]")
        except ValueError as exc:
            raise UpstreamError(
                f"Could not decode entries under {prefix}: {exc}",
                operation="kv_list",
                target=prefix,
            ) from exc

        pairs = []
        for entry in entries:
            encoded = entry.get("Value")
            value = base64.b64decode(encoded) if encoded else b""
            pairs.append((entry.get("Key", ""), value))
        return pairs

    def put(self, key: str, value: bytes) -> None:
        """Store ``value`` at ``key``."""
        res = self._kv("PUT", key, data=value)
        if res.status_code != 200:
            raise self.error(f"Could not put key {key}", res, "kv_put", self._kv_path(key))

    def delete(self, key: str) -> None:
        """Delete ``key``."""
        res = self._kv("DELETE", key)
        if res.status_code != 200:
            raise self.error(f"Could not delete key {key}", res, "kv_delete", self._kv_path(key))

    def service_hosts(self, name: str, tag: str = "") -> List[str]:
        """Discover ``host:port`` locations for a catalog service.

        Discovery is advisory: failures are logged and yield no hosts.
        """
        params = {"tag": tag} if tag else None
        try:
            res = self.request(
                "GET",
                f"/v1/catalog/service/{urllib.parse.quote(name)}",
                params=params,
                headers=self._headers(),
            )
        except UpstreamError as exc:
            logger.warning("Couldn't get %s services from consul: %s", name, exc)
            return []
        if res.status_code != 200:
            logger.warning("Couldn't get %s services from consul: %s", name, res.status_code)
            return []

        try:
            services = json.loads(res.text or "[]")
        except ValueError:
            logger.warning("Couldn't decode %s services from consul", name)
            return []

        hosts = [f"{svc.get('Node')}:{svc.get('ServicePort')}" for svc in services]
        logger.debug("Discovered %s service hosts: %s", name, hosts)
        return hosts
