"""Exception hierarchy."""


class BeatcutError(Exception):
    """Base class for all beatcut errors."""


class UnsupportedAudioError(BeatcutError):
    """Upload rejected before analysis: wrong MIME type or too large."""


class AudioDecodeError(BeatcutError):
    """The decoder could not turn the input into samples."""


class RenderError(BeatcutError):
    """The filter/render step could not be applied."""
