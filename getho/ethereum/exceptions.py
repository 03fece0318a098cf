class GethoError(Exception):
    """Base class for inspection errors."""


class NotFound(GethoError):
    """The node has no such transaction (or receipt, when one is required)."""


class DecodeError(GethoError, ValueError):
    """A raw object cannot be decoded: unrecognized type, bad field width, missing required input."""


class SignatureError(GethoError):
    """The sender cannot be recovered from the transaction signature."""


class TraceMalformedError(GethoError, ValueError):
    """The trace step stream violates call-depth discipline."""


class InputUnavailable(GethoError):
    """Optional context (header, receipt, trace) could not be retrieved."""
