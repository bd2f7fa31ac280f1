import mimetypes
from dataclasses import dataclass
from pathlib import Path

DEFAULT_RECORDING_MIME = "video/webm"
WEBCAM_MIME = "video/webm"


@dataclass(frozen=True)
class CompletedRecording:
    primary_blob: bytes                # screen capture
    primary_mime: str
    duration_seconds: float
    secondary_blob: bytes | None = None  # webcam capture, if any
    secondary_mime: str = WEBCAM_MIME
    title: str | None = None

    @property
    def content_type(self) -> str:
        return self.primary_mime.strip() or DEFAULT_RECORDING_MIME

    @property
    def has_secondary(self) -> bool:
        return self.secondary_blob is not None


@dataclass
class PendingFile:
    blob: bytes
    mime: str
    title: str
    size_bytes: int
    file_name: str | None = None

    @classmethod
    def from_path(cls, path: str | Path) -> "PendingFile":
        """Read a local media file; title defaults to the file name without extension."""
        path = Path(path)
        data = path.read_bytes()
        mime, _ = mimetypes.guess_type(path.name)
        return cls(
            blob=data,
            mime=mime or "",
            title=path.stem,
            size_bytes=len(data),
            file_name=path.name,
        )

    @property
    def display_name(self) -> str:
        return self.file_name or self.title
