"""Exception types raised by featmatch."""


class FeatMatchError(Exception):
    """Base class for featmatch errors."""


class UnknownAlgorithmError(FeatMatchError, ValueError):
    """Raised when a detector, matcher or policy name is not recognised."""

    def __init__(self, kind: str, name, choices=()):
        self.kind = kind
        self.name = name
        self.choices = tuple(choices)
        message = f"Unknown {kind} '{name}'"
        if self.choices:
            message += f" (expected one of: {', '.join(self.choices)})"
        super().__init__(message)


class AlgorithmUnavailableError(FeatMatchError, RuntimeError):
    """Raised when the installed OpenCV build does not ship an algorithm."""


class ImageLoadError(FeatMatchError, IOError):
    """Raised when an image file cannot be decoded."""


class ConfigError(FeatMatchError, ValueError):
    """Raised for malformed configuration files."""
