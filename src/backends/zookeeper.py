"""ZooKeeper client reduced to the two calls cleanup needs: list children, delete node."""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

from kazoo.client import KazooClient
from kazoo.exceptions import KazooException
from kazoo.handlers.threading import KazooTimeoutError

from constants import Constants
from common.errors import UpstreamError

logger = logging.getLogger(__name__)


class ZookeeperClient:
    """Coordination-service client.

    Use as a context manager to hold one session across several calls;
    calls made outside a ``with`` block open and close their own session.
    """

    def __init__(self, servers: Sequence[str], timeout: float = Constants.ZOOKEEPER_TIMEOUT):
        self.servers = list(servers)
        self.timeout = timeout
        self._client: Optional[KazooClient] = None

    def __enter__(self) -> "ZookeeperClient":
        self._client = self._connect()
        return self

    def __exit__(self, *exc) -> None:
        client, self._client = self._client, None
        if client is not None:
            client.stop()
            client.close()

    def _connect(self) -> KazooClient:
        client = KazooClient(hosts=",".join(self.servers), timeout=self.timeout)
        try:
            client.start(timeout=self.timeout)
        except (KazooException, KazooTimeoutError) as exc:
            logger.error("Could not connect to zookeeper %s: %s", self.servers, exc)
            raise UpstreamError(
                f"Could not connect to zookeeper: {exc}",
                operation="connect",
                target=",".join(self.servers),
            ) from exc
        return client

    def _call(self, operation: str, path: str, fn):
        if self._client is not None:
            return self._invoke(operation, path, fn, self._client)
        with self:
            return self._invoke(operation, path, fn, self._client)

    @staticmethod
    def _invoke(operation: str, path: str, fn, client: KazooClient):
        try:
            return fn(client)
        except (KazooException, KazooTimeoutError) as exc:
            raise UpstreamError(
                f"zookeeper {operation} failed for {path}: {exc!r}",
                operation=operation,
                target=path,
            ) from exc

    def children(self, path: str) -> List[str]:
        """Names of the direct children of ``path``."""
        return self._call("get_children", path, lambda client: list(client.get_children(path)))

    def delete(self, path: str) -> None:
        """Delete the single node ``path`` (it must have no children)."""
        logger.debug("Deleting zk://%s", path)
        self._call("delete", path, lambda client: client.delete(path))
