from models import (
    Creating,
    Failed,
    FailureReason,
    Finalizing,
    Idle,
    PendingFile,
    ProgressEvent,
    Quota,
    Ready,
    ShareDescriptor,
    UploadingPrimary,
    UploadingSecondary,
    UploadTicket,
    build_share_url,
    overall_percent,
)
from models.api import CreateRecordingRequest
from models.recording import CompletedRecording


def test_upload_ticket_parses_camel_case_response() -> None:
    ticket = UploadTicket.model_validate(
        {"id": "v1", "uploadUrl": "https://s3/screen", "shareToken": "tok", "webcamUploadUrl": "https://s3/cam"}
    )
    assert ticket.video_id == "v1"
    assert ticket.upload_url == "https://s3/screen"
    assert ticket.share_token == "tok"
    assert ticket.webcam_upload_url == "https://s3/cam"


def test_upload_ticket_webcam_url_optional() -> None:
    ticket = UploadTicket.model_validate({"id": "v1", "uploadUrl": "u", "shareToken": "t"})
    assert ticket.webcam_upload_url is None


def test_create_request_omits_webcam_size_when_absent() -> None:
    body = CreateRecordingRequest(title="t", duration=3, file_size=10, content_type="video/webm").to_wire()
    assert body == {"title": "t", "duration": 3, "fileSize": 10, "contentType": "video/webm"}


def test_quota_unlimited_and_usage_label() -> None:
    unlimited = Quota.model_validate({"maxVideosPerMonth": 0, "videosUsedThisMonth": 40, "maxVideoDurationSeconds": 0})
    assert unlimited.is_unlimited
    assert unlimited.remaining is None
    assert unlimited.usage_label is None
    assert unlimited.near_limit is False

    limited = Quota.model_validate({"maxVideosPerMonth": 25, "videosUsedThisMonth": 20, "maxVideoDurationSeconds": 300})
    assert limited.remaining == 5
    assert limited.max_duration_seconds == 300
    assert limited.usage_label == "20 / 25 videos this month"
    assert limited.usage_percent == 80
    assert limited.near_limit is True


def test_progress_event_percent() -> None:
    assert ProgressEvent(loaded=50, total=200).percent == 25
    assert ProgressEvent(loaded=0, total=0).percent == 100


def test_share_url_is_plain_join() -> None:
    assert build_share_url("https://app.example/", "abc") == "https://app.example/watch/abc"


def test_terminal_flags_and_messages() -> None:
    ready = Ready("v1", ShareDescriptor("https://x/watch/t"))
    failed = Failed(FailureReason.UPLOAD_FAILED, "Upload failed", "v1")
    assert ready.is_terminal and failed.is_terminal
    assert not Creating().is_terminal
    assert ready.message == "Your video is ready!"
    assert failed.message == "Upload failed"
    assert Idle() == Idle()


def test_overall_percent_milestones() -> None:
    assert overall_percent(Idle()) == 0
    assert overall_percent(Creating()) == 10
    assert overall_percent(UploadingPrimary("v1")) == 20
    assert overall_percent(UploadingPrimary("v1", ProgressEvent(50, 100))) == 50
    assert overall_percent(UploadingPrimary("v1", ProgressEvent(100, 100)), has_secondary=True) == 50
    assert overall_percent(UploadingSecondary("v1", ProgressEvent(100, 100))) == 80
    assert overall_percent(Finalizing("v1")) == 80
    assert overall_percent(Ready("v1", ShareDescriptor("u"))) == 100


def test_pending_file_from_path(tmp_path) -> None:
    path = tmp_path / "Team demo.mov"
    path.write_bytes(b"moov")
    entry = PendingFile.from_path(path)
    assert entry.title == "Team demo"
    assert entry.mime == "video/quicktime"
    assert entry.size_bytes == 4
    assert entry.display_name == "Team demo.mov"


def test_completed_recording_defaults_content_type() -> None:
    recording = CompletedRecording(primary_blob=b"x", primary_mime="", duration_seconds=1.0)
    assert recording.content_type == "video/webm"
    assert recording.has_secondary is False
