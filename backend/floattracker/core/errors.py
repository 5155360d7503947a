"""
errors.py — Error taxonomy for the filing parse pipeline.

Only InputError fails a whole invocation. Every other kind is confined to
the filing being processed and folded into the run's `errors` counter.
"""


class FloatTrackerError(RuntimeError):
    """Base exception for float tracker failures."""


class InputError(FloatTrackerError):
    """Missing or unknown entity identifier; raised before any filing is touched."""


class FetchError(FloatTrackerError):
    """A filing document could not be retrieved."""


class ServiceError(FloatTrackerError):
    """The completion service returned a non-success response or was unreachable."""


class ParseError(FloatTrackerError):
    """The completion response did not contain a parseable JSON object."""


class PersistenceError(FloatTrackerError):
    """A read or write against the storage layer failed."""


class NotFoundError(InputError):
    """The entity identifier is well-formed but unknown."""
