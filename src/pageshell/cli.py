from __future__ import annotations

import argparse

from .auth import password_digest
from .config import setup_logging


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    setup_logging(args.verbose)
    uvicorn.run(
        "pageshell.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def cmd_hash_password(args: argparse.Namespace) -> int:
    print(password_digest(args.password))
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="pageshell")
    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("serve", help="Run the web UI under uvicorn")
    s.add_argument("--host", default="127.0.0.1")
    s.add_argument("--port", type=int, default=8000)
    s.add_argument("--reload", action="store_true", help="Restart on code changes")
    s.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    s.set_defaults(func=cmd_serve)

    h = sub.add_parser("hash-password", help="Print the password_sha256 value for users.yaml")
    h.add_argument("password")
    h.set_defaults(func=cmd_hash_password)

    args = p.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
