"""Pending-install queue: requests dropped under the apps root are installed once."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict

from constants import Constants
from common.errors import InstallError

from .request import PackageRequest

logger = logging.getLogger(__name__)


@dataclass
class PollResult:
    installed: list = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class PendingInstallWatcher:
    """Installs queued requests and removes each entry after one attempt.

    An entry whose key cannot be deleted is attempted again on the next poll.
    """

    def __init__(
        self,
        kv,
        installer,
        apps_root: str = Constants.APPS_ROOT,
        refresh_interval: float = Constants.DEFAULT_REFRESH_INTERVAL,
    ):
        self.kv = kv
        self.installer = installer
        self.apps_root = apps_root if apps_root.endswith("/") else apps_root + "/"
        self.refresh_interval = refresh_interval

    def poll_once(self) -> PollResult:
        result = PollResult()
        for key, value in self.kv.list(self.apps_root):
            entry = key[len(self.apps_root):] if key.startswith(self.apps_root) else key
            if not entry.strip("/"):
                continue
            try:
                request = PackageRequest.from_json(value)
                self.installer.install_package(request)
            except InstallError as exc:
                logger.error("Could not install queued request %s: %s", entry, exc)
                result.failed[entry] = str(exc)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                logger.exception("Unexpected failure installing queued request %s", entry)
                result.failed[entry] = str(exc)
            else:
                logger.info("Installed queued request %s (%s)", entry, request.name)
                result.installed.append(entry)
            finally:
                self._discard(key)
        return result

    def _discard(self, key: str) -> None:
        try:
            self.kv.delete(key)
        except InstallError as exc:
            logger.error("Could not delete queued request %s: %s", key, exc)
