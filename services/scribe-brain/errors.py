"""Error taxonomy for the extraction pipeline and its configuration."""


class ScribeError(Exception):
    """Base class for all scribe brain errors."""


class ConfigurationMissing(ScribeError):
    """A required template, taxonomy list or credential is absent (fatal to the session)."""


class DocumentUnreadable(ScribeError):
    """The input file is neither a raster image nor a renderable PDF."""


class EncodingFailed(ScribeError):
    """The normalized image could not be compressed into a JPEG payload."""


class TransportError(ScribeError):
    """The AI service could not be reached or answered with an error status."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class EnvelopeDecodeError(ScribeError):
    """The service response does not match the candidates/content/parts envelope."""


class PayloadDecodeError(ScribeError):
    """The text inside the envelope is not a valid extraction record."""
