"""Local test assets used by the upload checks."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

_SIGNATURES: list[tuple[bytes, str, str]] = [
    (b"\x89PNG\r\n\x1a\n", "PNG", "image/png"),
    (b"\xff\xd8\xff", "JPEG", "image/jpeg"),
    (b"GIF87a", "GIF", "image/gif"),
    (b"GIF89a", "GIF", "image/gif"),
]


@dataclass(frozen=True)
class TestImage:
    """An image file loaded from disk, ready for upload."""

    __test__ = False  # not a pytest test class

    path: Path
    content: bytes
    format: str
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def is_recognized(self) -> bool:
        return self.format != "unknown"


def detect_image_format(data: bytes) -> tuple[str, str]:
    """Identify an image by its magic bytes.

    Returns:
        ``(format, mime_type)``, or ``("unknown", "application/octet-stream")``.
    """
    for signature, fmt, mime in _SIGNATURES:
        if data.startswith(signature):
            return fmt, mime
    # RIFF....WEBP
    if len(data) >= 12 and data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "WebP", "image/webp"
    return "unknown", "application/octet-stream"


def load_test_image(path: str | Path, search_dirs: list[Path] | None = None) -> TestImage:
    """Load the upload test image.

    Relative paths are tried against each of *search_dirs* (default: the
    CWD) in turn.

    Raises:
        FileNotFoundError: If the image does not exist.
        ValueError: If the file is empty.
    """
    candidate = Path(path)
    if not candidate.is_absolute():
        for directory in search_dirs or [Path(".")]:
            if (directory / candidate).exists():
                candidate = directory / candidate
                break

    if not candidate.exists():
        raise FileNotFoundError(
            f"Test image not found at {candidate}. Save a PNG, JPEG, GIF or WebP "
            f"image as '{Path(path).name}' or point --image at one."
        )

    content = candidate.read_bytes()
    if not content:
        raise ValueError(f"Test image file is empty: {candidate}")

    fmt, mime = detect_image_format(content)
    if fmt == "unknown":
        # Upload anyway; the server decides what it accepts.
        mime = "image/png"
    return TestImage(path=candidate, content=content, format=fmt, mime_type=mime)
