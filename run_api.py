"""
Launcher for the Maizic chatbot API.
Validates configuration before binding so a missing credential stops the process.
"""

import argparse
import os
import socket
import sys
from contextlib import closing
from pathlib import Path

import uvicorn

# Add the project root to PYTHONPATH for imports
sys.path.insert(0, str(Path(__file__).parent))

from app.config import ConfigurationError, env_flag, get_settings, validate_settings  # noqa: E402


def _port_available(host: str, port: int) -> bool:
    """Return True if we can bind to the given host:port."""
    with closing(socket.socket(socket.AF_INET, socket.SOCK_STREAM)) as s:
        try:
            s.bind((host, port))
            return True
        except OSError:
            return False


def main(argv=None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Run the Maizic chatbot API")
    parser.add_argument("--host", default=settings.HOST)
    parser.add_argument("--port", type=int, default=settings.PORT)
    parser.add_argument(
        "--reload",
        action="store_true",
        default=env_flag(os.getenv("RELOAD"), default=False),
        help="Enable auto-reload (dev only)",
    )
    args = parser.parse_args(argv)

    try:
        validate_settings(settings)
    except ConfigurationError as exc:
        print(f"[run_api] {exc}", file=sys.stderr)
        return 1

    host = args.host
    port = args.port
    if not _port_available(host, port):
        print(f"[run_api] Port {port} is busy; selecting an ephemeral port.")
        port = 0

    print(f"[run_api] Server running on http://{host}:{port or '<ephemeral>'}")
    uvicorn_kwargs = dict(
        host=host,
        port=port,
        reload=args.reload,
        log_level=settings.LOG_LEVEL.lower(),
        proxy_headers=bool(settings.FORWARDED_ALLOW_IPS.strip()),
        forwarded_allow_ips=settings.FORWARDED_ALLOW_IPS.strip() or None,
    )
    if args.reload:
        base = Path(__file__).parent
        uvicorn_kwargs.update(
            {
                "reload_dirs": [str(base / "app"), str(base / "api")],
                "reload_excludes": ["**/__pycache__/*", "**/*.pyc", ".venv/*", "venv/*"],
            }
        )
    # Reload requires an import string, not an app object
    uvicorn.run("api.server:app", **uvicorn_kwargs)
    return 0


if __name__ == "__main__":
    sys.exit(main())
