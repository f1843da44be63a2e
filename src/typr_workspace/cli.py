#!/usr/bin/env python3
"""
CLI for the workspace service.

Usage:
    typr-workspace serve --port 8765
    typr-workspace tree /path/to/notes --depth 2
    typr-workspace watch /path/to/notes/today.md
    typr-workspace start-watch /path/to/notes/today.md --api-port 8765
"""

import argparse
import json
import logging
import signal
import sys
import time
from pathlib import Path

from dotenv import load_dotenv

from .api_server import WorkspaceAPIService
from .client import WorkspaceAPIError, WorkspaceClient
from .config import WorkspaceConfig
from .event_hub import EventHub
from .exceptions import WorkspaceError
from .facade import WorkspaceFacade
from .models import ChangeEvent
from .tree_scanner import scan
from .watch_registry import WatchRegistry

logger = logging.getLogger("cli")


class GracefulShutdown:
    """Handle graceful shutdown on SIGINT/SIGTERM."""

    def __init__(self):
        self.should_exit = False
        signal.signal(signal.SIGINT, self._handler)
        signal.signal(signal.SIGTERM, self._handler)

    def _handler(self, signum, frame):
        logger.info("Received shutdown signal, stopping...")
        self.should_exit = True


def _load_config(args) -> WorkspaceConfig:
    return WorkspaceConfig.from_env(
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        poll_interval_ms=getattr(args, "poll_interval", None),
    )


def cmd_serve(args):
    """Run the workspace API server."""
    config = _load_config(args)
    facade = WorkspaceFacade(config)
    service = WorkspaceAPIService(config.host, config.port, facade)

    shutdown = GracefulShutdown()
    service.start()
    logger.info("Press Ctrl+C to stop")
    try:
        while not shutdown.should_exit:
            time.sleep(0.5)
    finally:
        service.stop()
    logger.info("Workspace API stopped")


def cmd_tree(args):
    """Print a directory snapshot as JSON."""
    config = _load_config(args)
    root = Path(args.path).resolve()
    if not root.is_dir():
        logger.error(f"Path is not a directory: {root}")
        sys.exit(1)
    try:
        entries = scan(root, 0, args.depth, config.markdown_extensions)
    except WorkspaceError as e:
        logger.error(f"Failed to scan {root}: {e}")
        sys.exit(1)
    print(json.dumps([e.to_dict() for e in entries], indent=2))


def cmd_watch(args):
    """Watch files locally and print change events until interrupted."""
    config = _load_config(args)

    def on_event(event: ChangeEvent):
        print(f"{event.kind.value}\t{event.path}", flush=True)

    hub = EventHub(config.subscriber_queue_size)
    hub.add_listener(on_event)
    registry = WatchRegistry(hub.publish, config.poll_interval, config.lock_timeout_seconds)

    for raw in args.paths:
        path = str(Path(raw).resolve())
        try:
            registry.start(path)
        except WorkspaceError as e:
            logger.error(f"Cannot watch {path}: {e}")
            registry.stop_all()
            sys.exit(1)

    shutdown = GracefulShutdown()
    logger.info(f"Watching {len(registry)} path(s) every {config.poll_interval_ms} ms")
    try:
        while not shutdown.should_exit:
            time.sleep(0.2)
    finally:
        registry.stop_all()
        registry.join_all(timeout=config.poll_interval * 2)


def _api_base(args) -> str:
    return f"http://{args.api_host}:{args.api_port}"


def _call_api(args, action):
    api_base = _api_base(args)
    try:
        with WorkspaceClient(api_base) as client:
            return action(client)
    except WorkspaceAPIError as e:
        logger.error(f"Workspace API rejected the request: {e}")
        sys.exit(1)
    except Exception as exc:
        logger.error(f"Failed to reach workspace API at {api_base}: {exc}")
        sys.exit(1)


def cmd_start_watch(args):
    path = str(Path(args.path).resolve())
    _call_api(args, lambda c: c.start_watch(path))
    print(f"Watching {path}")


def cmd_stop_watch(args):
    path = str(Path(args.path).resolve())
    _call_api(args, lambda c: c.stop_watch(path))
    print(f"Stopped watching {path}")


def cmd_stop_all_watches(args):
    _call_api(args, lambda c: c.stop_all_watches())
    print("Stopped all watches")


def cmd_list_watches(args):
    paths = _call_api(args, lambda c: c.watched_paths())
    print(f"\nWatched files ({len(paths)}):")
    if paths:
        for path in paths:
            print(f"  - {path}")
    else:
        print("  (none)")


def _add_api_args(parser):
    parser.add_argument("--api-host", default="127.0.0.1", help="Workspace API host (default: 127.0.0.1)")
    parser.add_argument("--api-port", type=int, default=8765, help="Workspace API port (default: 8765)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Typr workspace filesystem service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    serve_parser = subparsers.add_parser("serve", help="Start the workspace API server")
    serve_parser.add_argument("--host", default=None, help="Server host (default: 127.0.0.1)")
    serve_parser.add_argument("--port", type=int, default=None, help="Server port (default: 8765)")
    serve_parser.add_argument("--poll-interval", type=int, default=None, help="Watch poll interval in ms")
    serve_parser.set_defaults(func=cmd_serve)

    tree_parser = subparsers.add_parser("tree", help="Print a folder snapshot as JSON")
    tree_parser.add_argument("path", help="Folder to scan")
    tree_parser.add_argument("--depth", type=int, default=2, help="Levels to expand (default: 2)")
    tree_parser.set_defaults(func=cmd_tree)

    watch_parser = subparsers.add_parser("watch", help="Watch files and print changes")
    watch_parser.add_argument("paths", nargs="+", help="Files to watch")
    watch_parser.add_argument("--poll-interval", type=int, default=None, help="Poll interval in ms")
    watch_parser.set_defaults(func=cmd_watch)

    start_parser = subparsers.add_parser("start-watch", help="Ask the server to watch a file")
    start_parser.add_argument("path", help="File to watch")
    _add_api_args(start_parser)
    start_parser.set_defaults(func=cmd_start_watch)

    stop_parser = subparsers.add_parser("stop-watch", help="Ask the server to stop watching a file")
    stop_parser.add_argument("path", help="File to stop watching")
    _add_api_args(stop_parser)
    stop_parser.set_defaults(func=cmd_stop_watch)

    stop_all_parser = subparsers.add_parser("stop-all-watches", help="Ask the server to stop every watch")
    _add_api_args(stop_all_parser)
    stop_all_parser.set_defaults(func=cmd_stop_all_watches)

    list_parser = subparsers.add_parser("list-watches", help="List files watched by the server")
    _add_api_args(list_parser)
    list_parser.set_defaults(func=cmd_list_watches)

    return parser


def main(argv=None):
    load_dotenv()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    args = build_parser().parse_args(argv)

    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    args.func(args)


if __name__ == "__main__":
    main()
