"""Install/uninstall orchestration."""
from .orchestrator import PackageInstaller, UninstallResult
from .poller import PendingInstallWatcher
from .request import PackageRequest

__all__ = ["PackageInstaller", "PackageRequest", "PendingInstallWatcher", "UninstallResult"]
