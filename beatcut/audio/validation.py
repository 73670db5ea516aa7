"""Upload checks that run before any decoding."""

from beatcut.errors import UnsupportedAudioError

SUPPORTED_FORMATS = (
    "audio/wav",
    "audio/mpeg",
    "audio/mp3",
    "audio/ogg",
    "audio/aac",
    "audio/m4a",
    "audio/webm",
)

MAX_FILE_SIZE = 100 * 1024 * 1024


def is_format_supported(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.lower() in SUPPORTED_FORMATS


def validate_audio_upload(content_type: str | None, size: int, max_size: int = MAX_FILE_SIZE) -> None:
    """Raise :class:`UnsupportedAudioError` for a wrong MIME type or an oversize file."""
    if not is_format_supported(content_type):
        raise UnsupportedAudioError(
            f"Unsupported audio format: {content_type}. "
            f"Supported formats: {', '.join(SUPPORTED_FORMATS)}"
        )
    if size > max_size:
        raise UnsupportedAudioError(
            f"File size too large. Maximum size is {max_size // (1024 * 1024)}MB."
        )
