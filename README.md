# faceauthd

A face authentication daemon. It enrols faces for local users, stores their
embeddings on disk as JSON, and verifies a user against their enrolled faces
by cosine similarity with per-context thresholds. A Unix-socket helper lets a
PAM module running as root ask the per-user daemon to verify someone.

It has no dependencies beyond the Python standard library (3.10 or later).

## Installation

```
pip install .
```

For running the tests:

```
pip install ".[test]"
pytest
```

## Command line

```
faceauthd [-s PATH] [-d] [--similarity-threshold VALUE] [COMMAND ...]
```

Global options (given before the command):

- `-s`, `--storage-path PATH` - where face records and embeddings are kept.
  Defaults to `/var/lib/linux-hello` when run as root, otherwise
  `$HOME/.local/share/linux-hello`.
- `-d`, `--debug` - verbose logging.
- `--similarity-threshold VALUE` - default similarity threshold, used for
  contexts without a threshold of their own (default `0.6`).

Commands:

| command                              | what it does |
|--------------------------------------|--------------|
| `serve` (or no command)              | starts the PAM helper socket and runs until Ctrl+C |
| `register USER_ID [CONTEXT]`         | enrols a face (3 samples, 5 s timeout); context defaults to `test` |
| `verify USER_ID [CONTEXT]`           | verifies the user and prints the result and scores |
| `list USER_ID`                       | prints the user's face records as a JSON array |
| `delete USER_ID [FACE_ID]`           | deletes one face, or all of the user's faces when no id is given |

For example:

```
faceauthd --storage-path ./faces register 1000 login
faceauthd --storage-path ./faces verify 1000 login
faceauthd --storage-path ./faces list 1000
faceauthd --storage-path ./faces delete 1000
```

The exit status is 0 on success and 1 when the daemon cannot start or a
command fails (for example with an access error).

## Permissions

Every operation is checked against the UID of the running process: root may
act for any user, everyone else only for their own UID. Otherwise
`faceauthd.errors.AccessDenied` is raised.

## Matching thresholds

Verification compares a probe embedding with every enrolled embedding of the
user and keeps the best cosine similarity (computed over the common length
and clamped to 0.0-1.0). The match succeeds when that score reaches the
threshold of the request's context:

| context       | threshold |
|---------------|-----------|
| `login`       | 0.65      |
| `sudo`        | 0.70      |
| `sddm`        | 0.65      |
| `screenlock`  | 0.60      |
| `test`        | 0.50      |
| anything else | the configured default |

A verification yields a `faceauthd.protocol.VerifyResult` whose `outcome` is
one of `VerifyOutcome.SUCCESS`, `NO_MATCH` (a positive best score below the
threshold), `NO_FACE_DETECTED` (best score of zero), `NO_ENROLLMENT` (the
user has no faces), `CANCELLED` or `ERROR`.

## Using it from Python

```python
import asyncio
import os

from faceauthd.daemon import DaemonConfig, FaceAuthDaemon
from faceauthd.protocol import RegisterFaceRequest, VerifyRequest


async def run():
    daemon = FaceAuthDaemon(DaemonConfig.default())
    uid = os.getuid()

    response_json = await daemon.register_face(
        RegisterFaceRequest(user_id=uid, context="login", timeout_ms=5000, num_samples=3)
    )
    print(response_json)

    result = await daemon.verify(VerifyRequest(user_id=uid, context="login", timeout_ms=5000))
    print(result.outcome, result)

    print(await daemon.list_faces(uid))


asyncio.run(run())
```

`faceauthd.service.FaceAuthInterface` wraps a daemon with a JSON-in,
JSON-out surface: `register_face`, `delete_face`, `verify`, `list_faces`,
`ping` and `start_capture_stream` are coroutines; `version`,
`camera_available`, `root_mode` and `storage_path` are plain methods. Calls
are serialised with a lock, and failures raise `ServiceError`.
`start_capture_stream(user_id, num_frames, timeout_ms)` captures frames at
about 30 per second and returns `"OK"`; when the interface was given a
connection object, a `faceauthd.signals.StreamingSignalEmitter` is called for
every frame and on completion or error.

The request and response types in `faceauthd.protocol`
(`RegisterFaceRequest`, `RegisterFaceResponse`, `DeleteFaceRequest`,
`VerifyRequest`, `VerifyResult`) each have `to_json` and `from_json`;
`from_json` raises `ValueError` on malformed input. `VerifyResult` is
written as a bare tag for outcomes without fields (`"NoEnrollment"`) and as
a one-key object otherwise (`{"Success": {"face_id": ..., "similarity_score": ...}}`).

## Storage layout

Under the storage path:

```
embeddings/
users/<uid>/<face_id>.meta.json
users/<uid>/<face_id>.embedding.json
```

Face ids are generated as `face_<uid>_<unix seconds>`.

## PAM helper

`faceauthd.pam_helper.start_pam_helper(uid, daemon, socket_path=None)`
listens on a Unix socket, by default `socket_path_for(uid)`, that is
`/tmp/hello-pam-<uid>.socket`, made readable and writable by everyone. A
client writes a JSON `PamHelperRequest` (at most 4096 bytes) with `user_id`,
`context` and `timeout_ms`, and reads back a JSON `PamHelperResponse`:
`{"Success": {"face_id": ..., "similarity_score": ...}}` when the face
matched, otherwise `{"Failure": {"reason": ...}}`, with the reason
`Face not recognized` or the daemon's error message.

## What it does not do

- Camera capture is simulated. `CameraManager` produces blank frames and
  synthetic embeddings; no camera device is opened. `faceauthd.frames`
  defines the `CameraBackend` interface but the package ships no backend
  that implements it.
- The daemon does not register on a message bus. `FaceAuthInterface` is an
  in-process object, and `StreamingSignalEmitter` only logs its signals
  (`emit_capture_progress` returns the JSON payload it would send).
- There is no PAM module in this package; only the helper socket a PAM
  module would talk to.