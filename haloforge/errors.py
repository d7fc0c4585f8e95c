"""Exception hierarchy for HaloForge."""


class HaloForgeError(Exception):
    """Base class for all errors raised by the rendering pipeline."""


class DecodeError(HaloForgeError):
    """Input bytes are not a recognizable or parsable image."""


class FontError(HaloForgeError):
    """Font data is missing, malformed, or cannot supply outlines."""


class ConfigError(HaloForgeError):
    """A style or layer parameter is invalid.

    Attributes:
        parameter: Name of the offending parameter, if known.
    """

    def __init__(self, message, parameter=None):
        if parameter is not None:
            message = f"{parameter}: {message}"
        super().__init__(message)
        self.parameter = parameter


class EncodeError(HaloForgeError):
    """The composited image could not be serialized."""
