"""Unix-socket helper that lets the PAM module reach the per-user daemon."""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional, Union

from faceauthd.daemon import FaceAuthDaemon
from faceauthd.errors import DaemonError
from faceauthd.protocol import VerifyOutcome, VerifyRequest

logger = logging.getLogger(__name__)

_MAX_REQUEST_BYTES = 4096
_NOT_RECOGNIZED = "Face not recognized"


def _parse_object(text: str) -> dict:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    return data


@dataclass
class PamHelperRequest:
    """Verification request sent by the PAM module."""

    user_id: int
    context: str
    timeout_ms: int

    @classmethod
    def from_json(cls, text: str) -> "PamHelperRequest":
        data = _parse_object(text)
        try:
            user_id, context, timeout_ms = (
                data["user_id"],
                data["context"],
                data["timeout_ms"],
            )
        except KeyError as exc:
            raise ValueError(f"missing field `{exc.args[0]}`") from None
        for key, value in (("user_id", user_id), ("timeout_ms", timeout_ms)):
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValueError(f"field `{key}` must be a non-negative integer")
        if not isinstance(context, str):
            raise ValueError("field `context` must be a string")
        return cls(user_id=user_id, context=context, timeout_ms=timeout_ms)

    def to_json(self) -> str:
        return json.dumps(asdict(self))


@dataclass(frozen=True)
class PamHelperResponse:
    """Either a success with the matched face, or a failure with its reason."""

    face_id: Optional[str] = None
    similarity_score: Optional[float] = None
    reason: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.reason is None

    def to_json(self) -> str:
        if self.success:
            body = {"face_id": self.face_id, "similarity_score": self.similarity_score}
            return json.dumps({"Success": body})
        return json.dumps({"Failure": {"reason": self.reason}})

    @classmethod
    def from_json(cls, text: str) -> "PamHelperResponse":
        data = _parse_object(text)
        if len(data) != 1:
            raise ValueError("expected a single-key object")
        (tag, body), = data.items()
        if not isinstance(body, dict):
            raise ValueError(f"fields of `{tag}` must be an object")
        try:
            if tag == "Success":
                return cls(
                    face_id=str(body["face_id"]),
                    similarity_score=float(body["similarity_score"]),
                )
            if tag == "Failure":
                return cls(reason=str(body["reason"]))
        except KeyError as exc:
            raise ValueError(f"missing field `{exc.args[0]}`") from None
        raise ValueError(f"unknown variant `{tag}`")


def socket_path_for(uid: int) -> Path:
    """Socket the helper of a given user listens on."""
    return Path(f"/tmp/hello-pam-{uid}.socket")


async def handle_request(
    reader: asyncio.StreamReader,
    writer: asyncio.StreamWriter,
    daemon: FaceAuthDaemon,
) -> Optional[PamHelperResponse]:
    """Read one JSON request, verify through the daemon and write the reply.

    Returns the response sent, or None when the peer sent nothing.
    Raises ValueError on a malformed request.
    """
    raw = await reader.read(_MAX_REQUEST_BYTES)
    if not raw:
        return None

    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ValueError(f"request is not UTF-8: {exc}") from exc
    logger.debug("PAM helper received request: %s", text)
    request = PamHelperRequest.from_json(text)

    verify_request = VerifyRequest(
        user_id=request.user_id,
        context=request.context,
        timeout_ms=request.timeout_ms,
    )
    try:
        result = await daemon.verify(verify_request)
    except DaemonError as exc:
        response = PamHelperResponse(reason=str(exc))
    else:
        if result.outcome is VerifyOutcome.SUCCESS:
            response = PamHelperResponse(
                face_id=result.face_id, similarity_score=result.similarity_score
            )
        else:
            response = PamHelperResponse(reason=_NOT_RECOGNIZED)

    writer.write(response.to_json().encode("utf-8"))
    await writer.drain()
    return response


async def start_pam_helper(
    uid: int,
    daemon: FaceAuthDaemon,
    socket_path: Union[str, Path, None] = None,
) -> asyncio.AbstractServer:
    """Listen on the user's socket and serve PAM requests in the background."""
    path = Path(socket_path) if socket_path is not None else socket_path_for(uid)
    path.unlink(missing_ok=True)

    async def _serve(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            await handle_request(reader, writer, daemon)
        except (ValueError, OSError) as exc:
            logger.error("PAM helper error: %s", exc)
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

    server = await asyncio.start_unix_server(_serve, path=str(path))
    logger.info("PAM helper listening on %s", path)
    os.chmod(path, 0o666)
    return server