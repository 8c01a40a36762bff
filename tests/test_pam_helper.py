import asyncio
import json
import stat
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from faceauthd.daemon import DaemonConfig, FaceAuthDaemon
from faceauthd.pam_helper import (
    PamHelperRequest,
    PamHelperResponse,
    handle_request,
    socket_path_for,
    start_pam_helper,
)
from faceauthd.protocol import RegisterFaceRequest

UID = 1000


class _Writer:
    def __init__(self):
        self.data = bytearray()

    def write(self, chunk):
        self.data.extend(chunk)

    async def drain(self):
        pass


def _reader(payload: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(payload)
    reader.feed_eof()
    return reader


@pytest.fixture
def daemon(tmp_path):
    with patch("os.getuid", return_value=UID):
        yield FaceAuthDaemon(DaemonConfig(storage_path=tmp_path / "s", root_mode=False))


def _request(user_id=UID):
    return PamHelperRequest(user_id=user_id, context="login", timeout_ms=1000)


def test_socket_path_for():
    assert socket_path_for(1000) == Path("/tmp/hello-pam-1000.socket")


def test_request_round_trip():
    req = _request()
    assert PamHelperRequest.from_json(req.to_json()) == req


def test_request_missing_field():
    with pytest.raises(ValueError):
        PamHelperRequest.from_json('{"user_id": 1, "context": "login"}')


def test_response_wire_forms():
    ok = PamHelperResponse(face_id="f", similarity_score=0.5)
    assert json.loads(ok.to_json()) == {"Success": {"face_id": "f", "similarity_score": 0.5}}
    fail = PamHelperResponse(reason="Face not recognized")
    assert json.loads(fail.to_json()) == {"Failure": {"reason": "Face not recognized"}}
    assert PamHelperResponse.from_json(ok.to_json()) == ok
    assert PamHelperResponse.from_json(fail.to_json()) == fail
    assert ok.success and not fail.success


def test_response_unknown_variant():
    with pytest.raises(ValueError):
        PamHelperResponse.from_json('{"Maybe": {}}')


@pytest.mark.asyncio
async def test_handle_empty_request(daemon):
    writer = _Writer()
    assert await handle_request(_reader(b""), writer, daemon) is None
    assert writer.data == b""


@pytest.mark.asyncio
async def test_handle_request_not_enrolled(daemon):
    writer = _Writer()
    response = await handle_request(_reader(_request().to_json().encode()), writer, daemon)
    assert response.reason == "Face not recognized"
    assert PamHelperResponse.from_json(writer.data.decode()) == response


@pytest.mark.asyncio
async def test_handle_request_success(daemon):
    await daemon.register_face(
        RegisterFaceRequest(user_id=UID, context="login", timeout_ms=0, num_samples=1)
    )
    writer = _Writer()
    response = await handle_request(_reader(_request().to_json().encode()), writer, daemon)
    assert response.success
    assert response.face_id.startswith(f"face_{UID}_")
    assert response.similarity_score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_handle_request_daemon_error_becomes_failure(daemon):
    writer = _Writer()
    payload = _request(user_id=UID + 1).to_json().encode()
    response = await handle_request(_reader(payload), writer, daemon)
    assert not response.success
    assert str(UID + 1) in response.reason


@pytest.mark.asyncio
async def test_handle_malformed_request(daemon):
    with pytest.raises(ValueError):
        await handle_request(_reader(b"not json"), _Writer(), daemon)


@pytest.mark.asyncio
async def test_server_end_to_end(daemon):
    with tempfile.TemporaryDirectory(dir="/tmp") as directory:
        path = Path(directory) / "h.sock"
        path.write_text("stale")
        server = await start_pam_helper(UID, daemon, path)
        try:
            assert stat.S_IMODE(path.stat().st_mode) == 0o666
            reader, writer = await asyncio.open_unix_connection(str(path))
            writer.write(_request().to_json().encode())
            await writer.drain()
            reply = await reader.read()
            writer.close()
            await writer.wait_closed()
        finally:
            server.close()
            await server.wait_closed()
    assert PamHelperResponse.from_json(reply.decode()).reason == "Face not recognized"