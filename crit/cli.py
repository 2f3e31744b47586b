"""
Command-line entry point.

Usage:
    crit <file>              Open a file for review
    crit finish [port]       Ask a running crit instance to finish the review
"""

from __future__ import annotations

import argparse
import logging
import socket
import sys
import threading
import webbrowser
from pathlib import Path

import httpx
import uvicorn

from . import __version__
from .config import CritConfig
from .server import create_app
from .session import ReviewSession

logger = logging.getLogger(__name__)

DEFAULT_FINISH_PORT = 3000


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="crit",
        description="Inline review comments for a single file",
    )
    parser.add_argument("file", help="File to review")
    parser.add_argument("-p", "--port", type=int, help="Port to listen on (default: random free port)")
    parser.add_argument("-o", "--output", help="Output directory for review files (default: next to the file)")
    parser.add_argument("--no-open", action="store_true", help="Don't open a browser")
    parser.add_argument("--debounce", type=float, help="Seconds of quiet before comments are written")
    parser.add_argument("--log-level", help="Logging level (default: INFO)")
    parser.add_argument("-v", "--version", action="version", version=f"crit {__version__}")
    return parser


def apply_args(config: CritConfig, args: argparse.Namespace) -> CritConfig:
    """Overlay command-line flags on a loaded config."""
    if args.port is not None:
        config.port = args.port
    if args.output:
        config.output_dir = args.output
    if args.no_open:
        config.open_browser = False
    if args.debounce is not None:
        config.debounce_seconds = args.debounce
    if args.log_level:
        config.log_level = args.log_level
    return config


def finish_remote(port: int) -> int:
    """POST /api/finish to a running instance. Returns an exit code."""
    url = f"http://localhost:{port}/api/finish"
    try:
        response = httpx.post(url, timeout=5.0)
    except httpx.HTTPError as e:
        print(f"Error: could not reach crit on port {port}: {e}", file=sys.stderr)
        return 1
    if response.status_code != 200:
        print(f"Unexpected status: {response.status_code}", file=sys.stderr)
        return 1
    print(f"Review finished: {response.json().get('review_file', '')}")
    return 0


def _bind(host: str, port: int) -> socket.socket:
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    sock.bind((host, port))
    return sock


def serve(source: Path, config: CritConfig) -> int:
    """Run a review session until finished or interrupted."""
    try:
        session = ReviewSession.open(source, config)
    except OSError as e:
        print(f"Error loading document: {e}", file=sys.stderr)
        return 1

    try:
        sock = _bind(config.host, config.port)
    except OSError as e:
        session.close()
        print(f"Error starting server: {e}", file=sys.stderr)
        return 1

    app = create_app(session)
    server = uvicorn.Server(uvicorn.Config(app, log_level=config.log_level.lower()))
    session.on_shutdown_requested(lambda: setattr(server, "should_exit", True))

    port = sock.getsockname()[1]
    url = f"http://localhost:{port}"
    print(f"Reviewing {session.document.file_name} at {url}")
    if session.get_stale_notice():
        print(f"Note: {session.get_stale_notice()}")

    if config.open_browser:
        opener = threading.Timer(0.2, webbrowser.open, args=(url,))
        opener.daemon = True
        opener.start()

    try:
        server.run(sockets=[sock])
    except KeyboardInterrupt:
        # uvicorn re-raises SIGINT after its graceful shutdown
        pass
    finally:
        session.close()
        sock.close()

    comments = session.get_comments()
    if comments:
        print(f"{len(comments)} comment(s) written to {session.document.review_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    argv = list(sys.argv[1:] if argv is None else argv)

    if argv and argv[0] == "finish":
        port = DEFAULT_FINISH_PORT
        if len(argv) >= 2:
            try:
                port = int(argv[1])
            except ValueError:
                print(f"Error: invalid port {argv[1]!r}", file=sys.stderr)
                return 1
        return finish_remote(port)

    args = build_parser().parse_args(argv)
    config = apply_args(CritConfig.load(), args)
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    source = Path(args.file).resolve()
    if not source.exists():
        print(f"Error: {source} does not exist", file=sys.stderr)
        return 1
    if source.is_dir():
        print(f"Error: {source} is a directory, not a file", file=sys.stderr)
        return 1

    return serve(source, config)


if __name__ == "__main__":
    sys.exit(main())
