#!/usr/bin/env python3
"""
Typr Workspace Launcher.

Entry point used by the packaged editor: configures logging to the app data
directory, starts the workspace API and keeps it alive until shutdown.
"""

import logging
import os
import signal
import sys
import time
from pathlib import Path
from typing import Optional


def get_app_data_dir() -> Path:
    """Get platform-specific application data directory."""
    if sys.platform == "win32":
        base = Path(os.environ.get("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    elif sys.platform == "darwin":
        base = Path.home() / "Library" / "Application Support"
    else:
        base = Path(os.environ.get("XDG_DATA_HOME", Path.home() / ".local" / "share"))

    app_dir = base / "Typr"
    app_dir.mkdir(parents=True, exist_ok=True)
    return app_dir


def setup_logging(log_dir: Path) -> Path:
    """Configure logging with file output for debugging."""
    log_file = log_dir / "workspace.log"

    formatter = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # File handler - DEBUG level for detailed logs
    file_handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(formatter)

    # Console handler - INFO level
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    return log_file


logger = logging.getLogger("typr")


def wait_for_server(url: str, timeout: int = 30) -> bool:
    """Wait for a server to become available."""
    import httpx

    last_error = None
    start = time.time()
    attempts = 0
    while time.time() - start < timeout:
        attempts += 1
        try:
            resp = httpx.get(url, timeout=2)
            if resp.status_code == 200:
                logger.debug(f"Health check OK (attempt {attempts})")
                return True
            last_error = f"HTTP {resp.status_code}"
        except httpx.HTTPError as e:
            last_error = str(e)
        time.sleep(0.5)

    elapsed = time.time() - start
    logger.error(
        f"Health check failed after {elapsed:.1f}s ({attempts} attempts). "
        f"URL: {url}, last error: {last_error}"
    )
    return False


class ServiceManager:
    """Manages the workspace service lifecycle."""

    def __init__(self, host: str = "127.0.0.1", port: int = 8765, poll_interval_ms: Optional[int] = None):
        from typr_workspace.config import WorkspaceConfig
        from typr_workspace.facade import WorkspaceFacade

        self.config = WorkspaceConfig.from_env(host=host, port=port, poll_interval_ms=poll_interval_ms)
        self.facade = WorkspaceFacade(self.config)
        self._service = None

    @property
    def base_url(self) -> str:
        return f"http://{self.config.host}:{self.config.port}"

    def start_all(self):
        from typr_workspace.api_server import WorkspaceAPIService

        logger.info("Starting workspace service...")
        self._service = WorkspaceAPIService(self.config.host, self.config.port, self.facade)
        self._service.start()

    def stop_all(self):
        """Stop the service and every file watch."""
        logger.info("Stopping services...")
        if self._service is not None:
            self._service.stop()
            self._service = None
        else:
            self.facade.close()
        logger.info("Services stopped")


def main():
    """Main entry point."""
    import argparse

    parser = argparse.ArgumentParser(description="Typr - workspace filesystem service")
    parser.add_argument("--host", default="127.0.0.1", help="API host (default: 127.0.0.1)")
    parser.add_argument("--port", type=int, default=8765, help="API port (default: 8765)")
    parser.add_argument("--poll-interval", type=int, default=None, help="Watch poll interval in ms (default: 400)")
    parser.add_argument("--log-dir", type=str, help="Log directory (default: platform-specific app data dir)")
    args = parser.parse_args()

    from dotenv import load_dotenv
    load_dotenv()

    log_dir = Path(args.log_dir) if args.log_dir else get_app_data_dir()
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = setup_logging(log_dir)
    logger.info(f"Logging to {log_file}")

    service_manager = ServiceManager(args.host, args.port, args.poll_interval)
    shutting_down = False

    def signal_handler(signum, frame):
        nonlocal shutting_down
        if shutting_down:
            logger.info("Forcing immediate exit...")
            os._exit(1)
        shutting_down = True
        logger.info("Shutting down... (press Ctrl+C again to force)")
        service_manager.stop_all()
        sys.exit(0)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    service_manager.start_all()
    if not wait_for_server(f"{service_manager.base_url}/api/health"):
        service_manager.stop_all()
        return 1

    logger.info(f"Workspace API: {service_manager.base_url}. Press Ctrl+C to stop.")
    while True:
        time.sleep(1)


if __name__ == "__main__":
    sys.exit(main())
