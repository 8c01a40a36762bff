"""Command line: run the daemon, or drive it directly for enrolment and checks."""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Awaitable, Callable, Optional, Sequence

from faceauthd.daemon import DaemonConfig, FaceAuthDaemon
from faceauthd.errors import DaemonError
from faceauthd.pam_helper import start_pam_helper
from faceauthd.protocol import (
    DeleteFaceRequest,
    RegisterFaceRequest,
    VerifyOutcome,
    VerifyRequest,
)

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT_MS = 5000
_REGISTER_SAMPLES = 3


def build_parser() -> argparse.ArgumentParser:
    """Parser for the daemon and its direct-call subcommands."""
    parser = argparse.ArgumentParser(
        prog="faceauthd", description="Face authentication daemon"
    )
    parser.add_argument(
        "-s", "--storage-path", type=Path, default=None,
        help="directory holding the stored embeddings",
    )
    parser.add_argument("-d", "--debug", action="store_true", help="verbose logging")
    parser.add_argument(
        "--similarity-threshold", type=float, default=0.6,
        help="similarity threshold (0.0-1.0)",
    )

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="run the daemon (the default)")

    register = sub.add_parser("register", help="enrol a new face")
    register.add_argument("user_id", type=int)
    register.add_argument("context", nargs="?", default="test")

    verify = sub.add_parser("verify", help="verify a user's identity")
    verify.add_argument("user_id", type=int)
    verify.add_argument("context", nargs="?", default="test")

    list_cmd = sub.add_parser("list", help="list enrolled faces")
    list_cmd.add_argument("user_id", type=int)

    delete = sub.add_parser("delete", help="delete one face, or all of them")
    delete.add_argument("user_id", type=int)
    delete.add_argument("face_id", nargs="?", default=None)
    return parser


async def _register(daemon: FaceAuthDaemon, args: argparse.Namespace) -> None:
    request = RegisterFaceRequest(
        user_id=args.user_id,
        context=args.context,
        timeout_ms=_REQUEST_TIMEOUT_MS,
        num_samples=_REGISTER_SAMPLES,
    )
    response = await daemon.register_face(request)
    print("\n✓ Registration succeeded")
    print(f"Response: {response}")


async def _verify(daemon: FaceAuthDaemon, args: argparse.Namespace) -> None:
    request = VerifyRequest(
        user_id=args.user_id, context=args.context, timeout_ms=_REQUEST_TIMEOUT_MS
    )
    result = await daemon.verify(request)
    print("\n✓ Verification complete")
    print(f"Result: {result}")
    if result.outcome is VerifyOutcome.SUCCESS:
        print(f"  Face ID: {result.face_id}")
        print(f"  Score: {result.similarity_score:.4f}")
    elif result.outcome is VerifyOutcome.NO_MATCH:
        print(f"  Best score: {result.best_score:.4f}")
        print(f"  Required threshold: {result.threshold:.4f}")
    elif result.outcome is VerifyOutcome.NO_ENROLLMENT:
        print("  No face enrolled for this user")


async def _list(daemon: FaceAuthDaemon, args: argparse.Namespace) -> None:
    faces = await daemon.list_faces(args.user_id)
    print("\n✓ Enrolled faces:")
    print(faces)


async def _delete(daemon: FaceAuthDaemon, args: argparse.Namespace) -> None:
    await daemon.delete_face(DeleteFaceRequest(user_id=args.user_id, face_id=args.face_id))
    print("\n✓ Deletion succeeded")


_COMMANDS: dict[str, Callable[[FaceAuthDaemon, argparse.Namespace], Awaitable[None]]] = {
    "register": _register,
    "verify": _verify,
    "list": _list,
    "delete": _delete,
}


async def _serve(daemon: FaceAuthDaemon) -> None:
    server = await start_pam_helper(os.getuid(), daemon)
    logger.info("Daemon ready. Press Ctrl+C to stop.")
    async with server:
        await server.serve_forever()


def _run_service(daemon: FaceAuthDaemon) -> int:
    if daemon.config.root_mode:
        logger.info("Root mode: serving every user")
    else:
        logger.warning("User mode: serving only the current user")
    try:
        asyncio.run(_serve(daemon))
    except KeyboardInterrupt:
        logger.info("Stopping the daemon")
    except OSError as exc:
        print(f"✗ Service failed: {exc}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the daemon or one direct-call command; returns the exit status."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = DaemonConfig(
        default_similarity_threshold=args.similarity_threshold, debug=args.debug
    )
    if args.storage_path is not None:
        config.storage_path = args.storage_path
    logger.info("Storage: %s", config.storage_path)
    logger.info("Similarity threshold: %s", config.default_similarity_threshold)

    try:
        daemon = FaceAuthDaemon(config)
    except DaemonError as exc:
        print(f"✗ Cannot start: {exc}", file=sys.stderr)
        return 1

    command = args.command or "serve"
    if command == "serve":
        return _run_service(daemon)

    try:
        asyncio.run(_COMMANDS[command](daemon, args))
    except DaemonError as exc:
        print(f"\n✗ {command} failed: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())