import pytest

from portal.upload_progress import StepStatus, UploadTracker, build_steps


def test_build_steps_labels():
    steps = build_steps(["upload", "validate", "custom"])
    assert [s.label for s in steps] == ["File Upload", "Data Validation", "Custom"]
    assert all(s.status == StepStatus.PENDING for s in steps)


def test_transitions_replace_step_records():
    tracker = UploadTracker()
    before = tracker.get("upload")
    tracker.start("upload", "Uploading file...")
    after = tracker.get("upload")

    assert after is not before
    assert before.status == StepStatus.PENDING
    assert after.status == StepStatus.PROCESSING
    assert after.message == "Uploading file..."


def test_listener_receives_every_change():
    seen = []
    tracker = UploadTracker(["upload", "ready"], listener=seen.append)
    tracker.start("upload")
    tracker.complete("upload", "File uploaded")
    tracker.fail("ready", "boom")

    assert len(seen) == 3
    assert [s.status for s in seen[-1]] == [StepStatus.COMPLETED, StepStatus.ERROR]
    assert tracker.has_error
    assert not tracker.is_finished


def test_finished_and_reset():
    tracker = UploadTracker(["upload", "ready"])
    tracker.complete("upload")
    tracker.complete("ready")
    assert tracker.is_finished

    tracker.reset()
    assert [s.status for s in tracker.steps] == [StepStatus.PENDING, StepStatus.PENDING]


def test_unknown_step_raises():
    tracker = UploadTracker()
    assert not tracker.has("train")
    with pytest.raises(KeyError):
        tracker.start("train")


def test_as_dicts():
    tracker = UploadTracker(["upload"])
    tracker.complete("upload", "done")
    assert tracker.as_dicts() == [
        {"id": "upload", "label": "File Upload", "status": "completed", "message": "done"}
    ]
