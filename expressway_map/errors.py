"""
Error types shared by the editor, the file store and the API.

None of these are fatal: each one is reported to the user and the
current edit session (if any) is left intact.
"""


class ExpresswayMapError(Exception):
    """Base class for all expected, user-reportable failures."""


class ConstraintViolation(ExpresswayMapError):
    """An edit would break a geometry constraint (e.g. fewer than 2 vertices)."""


class NotFound(ExpresswayMapError):
    """The feature to replace does not exist in the collection."""


class AmbiguousMatch(NotFound):
    """A name-based lookup matched more than one feature."""


class TransportError(ExpresswayMapError):
    """Network or server failure while talking to the feature service."""


class MalformedInput(ExpresswayMapError):
    """A feature is missing required fields or carries invalid coordinates."""


class StoreCorrupted(ExpresswayMapError):
    """The server's own GeoJSON file cannot be read as a FeatureCollection."""
