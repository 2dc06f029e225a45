class AsciiShadeError(Exception):
    """Base class for errors reported back to the caller of the conversion core."""


class InvalidArgument(AsciiShadeError, ValueError):
    """An argument is outside its accepted range or format."""


class PreconditionViolated(AsciiShadeError, RuntimeError):
    """The operation cannot run in the current state; nothing was changed."""


class ResourceUnavailable(AsciiShadeError, OSError):
    """An external resource (usually an image file) could not be read."""
