"""Exceptions raised by the guard."""


class ConfigurationError(RuntimeError):
    """A required configuration parameter is missing or invalid."""


class AttributeDecodeError(RuntimeError):
    """The attribute payload is missing or could not be decoded."""


class UnknownSessionError(RuntimeError):
    """No Pod exists for the referenced session ID."""


class MalformedTargetURIError(RuntimeError):
    """The target resource of an unsolicited bag could not be parsed."""


class RedirectDispatchError(RuntimeError):
    """Failed to send the client on to the Engine."""

    def __init__(self, error_id: str, message: str) -> None:
        super().__init__(message)
        self.error_id = error_id
        self.message = message
