"""HTTP API for the package catalog and install orchestration, using aiohttp."""

from __future__ import annotations

import asyncio
import logging
import signal
from functools import partial
from typing import Any, Callable, Optional

from aiohttp import web

from constants import Constants
from common.errors import ConflictError, InstallError, NotFoundError, UpstreamError, ValidationError
from install.orchestrator import PackageInstaller
from install.poller import PendingInstallWatcher
from install.request import PackageRequest

logger = logging.getLogger(__name__)

_STATUS = (
    (ValidationError, 400),
    (NotFoundError, 404),
    (ConflictError, 409),
    (UpstreamError, 500),
)


def status_for(exc: InstallError) -> int:
    for kind, status in _STATUS:
        if isinstance(exc, kind):
            return status
    return 500


@web.middleware
async def error_middleware(request: web.Request, handler):
    """Map InstallError subclasses onto JSON error responses."""
    try:
        return await handler(request)
    except InstallError as exc:
        status = status_for(exc)
        if status >= 500:
            logger.error("%s %s failed: %s", request.method, request.path, exc)
        else:
            logger.info("%s %s rejected (%d): %s", request.method, request.path, status, exc)
        return web.json_response({"error": str(exc)}, status=status)


class InstallApiServer:
    """Serves the catalog and install API and runs the pending-install watcher."""

    def __init__(
        self,
        installer: PackageInstaller,
        watcher: Optional[PendingInstallWatcher] = None,
        host: str = Constants.DEFAULT_LISTEN_HOST,
        port: int = Constants.DEFAULT_LISTEN_PORT,
    ):
        self._installer = installer
        self._watcher = watcher
        self._host = host
        self._port = port
        self._runner: Optional[web.AppRunner] = None
        self._watch_task: Optional[asyncio.Task] = None

    def _create_app(self) -> web.Application:
        app = web.Application(middlewares=[error_middleware])
        app.router.add_get("/health", self._health)
        app.router.add_get("/1/packages", self._packages)
        app.router.add_get("/1/packages/{name}", self._package)
        app.router.add_get("/1/repositories", self._repositories)
        app.router.add_get("/1/frameworks", self._frameworks)
        app.router.add_delete("/1/frameworks/{id}", self._shutdown_framework)
        app.router.add_post("/1/install", self._install)
        app.router.add_delete("/1/install", self._uninstall)
        app.on_startup.append(self._on_startup)
        app.on_cleanup.append(self._on_cleanup)
        return app

    async def _blocking(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run a blocking orchestrator call in the default executor."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(fn, *args))

    async def _on_startup(self, app: web.Application) -> None:
        if self._watcher is not None:
            self._watch_task = asyncio.create_task(self._watch())
        logger.info("API server starting on %s:%s", self._host, self._port)

    async def _on_cleanup(self, app: web.Application) -> None:
        if self._watch_task is not None:
            self._watch_task.cancel()
            try:
                await self._watch_task
            except asyncio.CancelledError:
                pass
            self._watch_task = None
        logger.info("API server stopped")

    async def _watch(self) -> None:
        while True:
            try:
                await self._blocking(self._watcher.poll_once)
            except InstallError as exc:
                logger.error("Pending install poll failed: %s", exc)
            except Exception:  # pylint: disable=broad-exception-caught
                logger.exception("Unexpected failure polling pending installs")
            await asyncio.sleep(self._watcher.refresh_interval)

    async def _health(self, request: web.Request) -> web.Response:
        return web.json_response({"status": "ok", "version": Constants.VERSION})

    async def _packages(self, request: web.Request) -> web.Response:
        packages = await self._blocking(self._installer.packages)
        return web.json_response([p.to_dict() for p in packages])

    async def _package(self, request: web.Request) -> web.Response:
        package = await self._blocking(self._installer.package, request.match_info["name"])
        return web.json_response(package.to_dict())

    async def _repositories(self, request: web.Request) -> web.Response:
        repositories = await self._blocking(self._installer.repositories)
        return web.json_response([r.to_dict() for r in repositories])

    async def _frameworks(self, request: web.Request) -> web.Response:
        completed = request.query.get("completed", "").lower() in ("1", "true", "yes")
        frameworks = await self._blocking(self._installer.frameworks, completed)
        return web.json_response([fw.to_dict() for fw in frameworks])

    async def _shutdown_framework(self, request: web.Request) -> web.Response:
        framework_id = request.match_info["id"]
        await self._blocking(self._installer.shutdown_framework, framework_id)
        return web.json_response({"id": framework_id, "status": "shutdown"})

    async def _install(self, request: web.Request) -> web.Response:
        pkg_request = PackageRequest.from_json(await request.read())
        response = await self._blocking(self._installer.install_package, pkg_request)
        return web.Response(status=201, text=response, content_type="application/json")

    async def _uninstall(self, request: web.Request) -> web.Response:
        pkg_request = PackageRequest.from_json(await request.read())
        result = await self._blocking(self._installer.uninstall_package, pkg_request)
        return web.json_response(result.to_dict())

    async def start(self) -> None:
        self._runner = web.AppRunner(self._create_app())
        await self._runner.setup()
        site = web.TCPSite(self._runner, self._host, self._port)
        await site.start()
        logger.info("Listening on http://%s:%s", self._host, self._port)

    async def stop(self) -> None:
        if self._runner:
            await self._runner.cleanup()
            self._runner = None


def run_api_server_sync(server: InstallApiServer) -> None:
    """Run ``server`` until SIGTERM or SIGINT."""
    loop = asyncio.new_event_loop()

    async def run():
        await server.start()
        stop_event = asyncio.Event()
        running_loop = asyncio.get_running_loop()
        for sig in (signal.SIGTERM, signal.SIGINT):
            running_loop.add_signal_handler(sig, stop_event.set)
        await stop_event.wait()
        logger.info("Shutdown signal received, stopping...")
        await server.stop()

    try:
        loop.run_until_complete(run())
    except KeyboardInterrupt:
        loop.run_until_complete(server.stop())
    finally:
        loop.close()
        logger.info("API server shutdown complete")
