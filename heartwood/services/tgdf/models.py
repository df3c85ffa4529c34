"""TGDF data types: tag vocabulary, options and sentinels.

A tagged value is a mapping with exactly one key naming the tag and the
tag-specific payload as its value:

    {"text": "hello"}
    {"number": "42"}
    {"object": {"name": {"text": "x"}, "count": {"number": "2"}}}
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

TGDF_VERSION = "v0.1.0"


class Tag(str, Enum):
    """Tag vocabulary of the wire format."""

    TEXT = "text"
    NUMBER = "number"
    YESNO = "yesno"
    NULL = "null"
    INSTANT = "instant"
    DATE = "date"  # Legacy spelling of INSTANT, accepted on extraction only
    LIST = "list"
    ITEMS = "items"
    OBJECT = "object"
    UNKNOWN = "unknown"


KNOWN_TAGS = frozenset(tag.value for tag in Tag)


class EnvelopeType(str, Enum):
    """Envelope types used by the API and the file pipeline."""

    RESPONSE = "response"
    ERROR = "error"
    SCRIPT_INFO = "script_info"
    API_DIRECTORY = "api_directory"
    STATUS = "status"


@dataclass(frozen=True)
class TgdfOptions:
    """Conversion options shared by the codec functions.

    Attributes:
        deep: Recurse into nested structures; when False only the outer
            level is tagged (or untagged) and children are left as-is
        preserve_arrays: Encode sequences as ``list`` instead of the
            index-keyed ``items`` mapping; on extraction rebuild ``items``
            payloads as lists
        strict: Only treat single-key mappings whose key is a known tag as
            tagged values
    """

    deep: bool = True
    preserve_arrays: bool = False
    strict: bool = False

    def merged(self, **overrides: Any) -> "TgdfOptions":
        """Return a copy with the non-None overrides applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes) if changes else self


DEFAULT_OPTIONS = TgdfOptions()


class _Missing:
    """Placeholder for array slots absent from an ``items`` payload."""

    _instance = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self):
        return (_Missing, ())


MISSING = _Missing()


@dataclass(frozen=True)
class InvalidInstant:
    """Result of extracting an ``instant`` whose payload is not a date.

    Keeps the raw payload so the value can be re-encoded unchanged.
    """

    raw: Any

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        return "Invalid Date"
