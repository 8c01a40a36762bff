import json
import logging
import os

import pytest

from faceauthd.daemon import DaemonConfig, FaceAuthDaemon
from faceauthd.protocol import (
    DeleteFaceRequest,
    RegisterFaceRequest,
    RegisterFaceResponse,
    VerifyOutcome,
    VerifyRequest,
    VerifyResult,
)
from faceauthd.service import FaceAuthInterface, ServiceError


@pytest.fixture
def interface(tmp_path):
    config = DaemonConfig(storage_path=tmp_path, root_mode=False)
    return FaceAuthInterface(FaceAuthDaemon(config))


def _register_json(context="test"):
    return RegisterFaceRequest(
        user_id=os.getuid(), context=context, timeout_ms=5000, num_samples=2
    ).to_json()


@pytest.mark.asyncio
async def test_ping(interface):
    assert await interface.ping() == "pong"


@pytest.mark.asyncio
async def test_register_face_rejects_bad_json(interface):
    with pytest.raises(ServiceError, match="^JSON parse error"):
        await interface.register_face("{not json")


@pytest.mark.asyncio
async def test_delete_face_rejects_bad_json(interface):
    with pytest.raises(ServiceError, match="^JSON parse error"):
        await interface.delete_face("[]")


@pytest.mark.asyncio
async def test_verify_rejects_missing_fields(interface):
    with pytest.raises(ServiceError, match="^JSON parse error"):
        await interface.verify(json.dumps({"user_id": 1}))


@pytest.mark.asyncio
async def test_register_then_list(interface):
    response = RegisterFaceResponse.from_json(await interface.register_face(_register_json("login")))
    assert response.face_id.startswith(f"face_{os.getuid()}_")

    faces = json.loads(await interface.list_faces(os.getuid()))
    assert [face["face_id"] for face in faces] == [response.face_id]
    assert faces[0]["context"] == "login"


@pytest.mark.asyncio
async def test_verify_without_enrollment(interface):
    request = VerifyRequest(user_id=os.getuid(), context="test", timeout_ms=5000)
    result = VerifyResult.from_json(await interface.verify(request.to_json()))
    assert result.outcome is VerifyOutcome.NO_ENROLLMENT


@pytest.mark.asyncio
async def test_verify_after_register_succeeds(interface):
    response = RegisterFaceResponse.from_json(await interface.register_face(_register_json()))
    request = VerifyRequest(user_id=os.getuid(), context="test", timeout_ms=5000)
    result = VerifyResult.from_json(await interface.verify(request.to_json()))
    assert result.outcome is VerifyOutcome.SUCCESS
    assert result.face_id == response.face_id
    assert result.similarity_score == pytest.approx(1.0)


@pytest.mark.asyncio
async def test_delete_all_faces(interface):
    await interface.register_face(_register_json())
    await interface.delete_face(DeleteFaceRequest(user_id=os.getuid()).to_json())
    assert json.loads(await interface.list_faces(os.getuid())) == []


@pytest.mark.asyncio
async def test_delete_single_face(interface):
    response = RegisterFaceResponse.from_json(await interface.register_face(_register_json()))
    request = DeleteFaceRequest(user_id=os.getuid(), face_id=response.face_id)
    await interface.delete_face(request.to_json())
    assert json.loads(await interface.list_faces(os.getuid())) == []


@pytest.mark.asyncio
async def test_start_capture_stream_without_emitter(interface):
    assert await interface.start_capture_stream(os.getuid(), 2, 10000) == "OK"


@pytest.mark.asyncio
async def test_start_capture_stream_emits_signals(tmp_path, caplog):
    config = DaemonConfig(storage_path=tmp_path, root_mode=False)
    iface = FaceAuthInterface(FaceAuthDaemon(config), connection=object())
    with caplog.at_level(logging.DEBUG, logger="faceauthd.signals"):
        assert await iface.start_capture_stream(42, 3, 10000) == "OK"
    progress = [r for r in caplog.records if "CaptureProgress" in r.getMessage()]
    completed = [r for r in caplog.records if "CaptureCompleted" in r.getMessage()]
    assert len(progress) == 3
    assert len(completed) == 1
    assert "user_id=42" in completed[0].getMessage()


@pytest.mark.asyncio
async def test_start_capture_stream_timeout(tmp_path, caplog):
    config = DaemonConfig(storage_path=tmp_path, root_mode=False)
    iface = FaceAuthInterface(FaceAuthDaemon(config), connection=object())
    with caplog.at_level(logging.DEBUG, logger="faceauthd.signals"):
        with pytest.raises(ServiceError, match="Capture timeout"):
            await iface.start_capture_stream(7, 3, 0)
    errors = [r for r in caplog.records if "CaptureError" in r.getMessage()]
    assert len(errors) == 1


def test_properties(tmp_path):
    config = DaemonConfig(storage_path=tmp_path, root_mode=False)
    iface = FaceAuthInterface(FaceAuthDaemon(config))
    assert iface.version() == "0.1.0"
    assert iface.storage_path() == str(tmp_path)
    assert iface.root_mode() is False
    assert iface.camera_available() is True