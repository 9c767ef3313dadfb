"""Tests for ProgressEvent serialization and the ProgressEmitter contract."""

import json
import uuid

import pytest

from schemas.generation import MAX_SSE_EVENT_BYTES, GenerationRequest, ProgressEvent
from services.generation.emitter import ProgressEmitter


def _decode(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: ") :])


def test_sse_frame_uses_camel_case_and_omits_unset_fields():
    project_id = uuid.uuid4()
    payload = _decode(ProgressEvent.completed(project_id, 3, 1250).to_sse())
    assert payload == {
        "type": "complete",
        "projectId": str(project_id),
        "fileCount": 3,
        "duration": "1250ms",
    }


def test_error_event_payload():
    event = ProgressEvent.failed("bad", "syntax-error", filename="app.js")
    assert event.is_terminal
    assert event.to_payload() == {
        "type": "error",
        "error": "bad",
        "errorCode": "syntax-error",
        "filename": "app.js",
    }


def test_non_terminal_events():
    for event in (
        ProgressEvent.status("hi"),
        ProgressEvent.artifact_started("a.js"),
        ProgressEvent.progress(10, 1.5),
        ProgressEvent.validation_failed("syntax-error", "a.js", "oops"),
    ):
        assert not event.is_terminal


def test_oversized_event_is_rejected():
    event = ProgressEvent.status("x" * (MAX_SSE_EVENT_BYTES + 1))
    with pytest.raises(ValueError):
        event.to_sse()


def test_generation_request_rejects_unknown_fields():
    with pytest.raises(ValueError):
        GenerationRequest.model_validate(
            {"project_id": str(uuid.uuid4()), "surprise": True}
        )


def test_generation_request_defaults():
    req = GenerationRequest.model_validate({"project_id": str(uuid.uuid4())})
    assert req.answers == {}
    assert req.preferences == {}


def test_emitter_delivers_in_order():
    received: list[ProgressEvent] = []
    emitter = ProgressEmitter(received.append)
    emitter.emit(ProgressEvent.status("start"))
    emitter.emit(ProgressEvent.artifact_started("a.js"))
    emitter.emit(ProgressEvent.progress(5, 0.5))
    assert [e.type for e in received] == ["status", "file", "progress"]
    assert emitter.sent == 3


def test_emitter_keeps_progress_monotonic():
    received: list[ProgressEvent] = []
    emitter = ProgressEmitter(received.append)
    emitter.emit(ProgressEvent.progress(10, 1.0))
    emitter.emit(ProgressEvent.progress(4, 0.4))
    emitter.emit(ProgressEvent.progress(12, 1.2))
    assert [e.length for e in received] == [10, 10, 12]


def test_nothing_is_delivered_after_terminal_event():
    received: list[ProgressEvent] = []
    emitter = ProgressEmitter(received.append)
    assert emitter.emit(ProgressEvent.failed("boom", "upstream-stream-error"))
    assert emitter.terminated
    assert not emitter.emit(ProgressEvent.progress(1, 0.1))
    assert not emitter.emit(ProgressEvent.completed(uuid.uuid4(), 1, 1))
    assert [e.type for e in received] == ["error"]


def test_detached_emitter_drops_but_still_tracks_termination():
    received: list[ProgressEvent] = []
    emitter = ProgressEmitter(received.append)
    emitter.detach()
    assert not emitter.attached
    assert not emitter.emit(ProgressEvent.completed(uuid.uuid4(), 1, 1))
    assert emitter.terminated
    assert received == []
