"""HTTP API surface."""
from .server import InstallApiServer, run_api_server_sync

__all__ = ["InstallApiServer", "run_api_server_sync"]
