import pytest

from faceauthd.errors import (
    AccessDenied,
    CameraFailure,
    DaemonError,
    FaceNotFound,
    StorageError,
    UserNotFound,
)


@pytest.mark.parametrize(
    ("error", "fragment"),
    [
        (UserNotFound(1000), "1000"),
        (FaceNotFound("face_1"), "face_1"),
        (AccessDenied("no"), "no"),
        (StorageError("disk"), "disk"),
        (CameraFailure("none"), "none"),
    ],
)
def test_all_errors_are_daemon_errors(error, fragment):
    assert isinstance(error, DaemonError)
    assert fragment in str(error)


def test_user_not_found_keeps_id():
    error = UserNotFound(1000)
    assert error.user_id == 1000
    assert "1000" in str(error)


def test_face_not_found_keeps_id():
    error = FaceNotFound("face_1")
    assert error.face_id == "face_1"
    assert "face_1" in str(error)


def test_access_denied_message():
    error = AccessDenied("UID 1001 cannot access UID 1000")
    assert error.reason == "UID 1001 cannot access UID 1000"
    assert str(error).endswith("UID 1001 cannot access UID 1000")


def test_storage_and_camera_messages_carry_reason():
    assert "write failed" in str(StorageError("write failed"))
    assert "no frame" in str(CameraFailure("no frame"))
    assert StorageError("x").reason == "x"


def test_specific_errors_are_distinct():
    error = StorageError("x")
    assert isinstance(error, DaemonError)
    assert not isinstance(error, CameraFailure)
    assert error.reason == "x"