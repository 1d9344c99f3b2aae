"""ht errors - every failure the request pipeline can surface.

Each error is terminal for the invocation: the CLI prints its message as
``ERROR: <message>`` and exits with status 1. Nothing is retried.
"""


class HtError(Exception):
    """Base class for all errors reported to the user."""


class ParseError(HtError):
    """A request item has no recognized separator or an empty key."""


class ConflictError(HtError):
    """Two body sources that cannot be combined were both supplied."""


class FieldTypeError(HtError):
    """A body field was used with a body mode that cannot carry it."""


class UrlError(HtError):
    """The URL cannot be parsed or has no host."""


class ReadError(HtError):
    """Reading stdin or an attached file failed."""


class JsonError(HtError):
    """A typed (:=) field holds a malformed JSON literal."""


class TransportError(HtError):
    """The HTTP layer failed to build or send the request."""


class DecodeError(HtError):
    """A response body could not be decoded as text."""


class WriteError(HtError):
    """The download target could not be opened or written."""


class ConfigError(HtError):
    """The config file cannot be read or holds a value of the wrong type."""
