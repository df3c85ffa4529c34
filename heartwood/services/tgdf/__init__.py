"""Tagged Data Format (TGDF) codec.

Usage:
    from heartwood.services.tgdf import to_tagged, from_tagged, wrap_response

    tagged = to_tagged({"name": "x", "count": 2})
    # {"object": {"name": {"text": "x"}, "count": {"number": "2"}}}
    native = from_tagged(tagged)
    envelope = wrap_response(native)
"""

from .models import (
    TGDF_VERSION,
    KNOWN_TAGS,
    MISSING,
    DEFAULT_OPTIONS,
    Tag,
    EnvelopeType,
    TgdfOptions,
    InvalidInstant,
)

from .codec import (
    to_tagged,
    from_tagged,
    is_tagged,
    ensure_tagged,
    format_number,
    parse_number,
    format_instant,
    parse_instant,
)

from .envelope import (
    wrap_response,
    unwrap_response,
    JSON_ENCODERS,
    json_default,
    to_jsonable,
)

__all__ = [
    # Models
    "TGDF_VERSION",
    "KNOWN_TAGS",
    "MISSING",
    "DEFAULT_OPTIONS",
    "Tag",
    "EnvelopeType",
    "TgdfOptions",
    "InvalidInstant",
    # Codec
    "to_tagged",
    "from_tagged",
    "is_tagged",
    "ensure_tagged",
    "format_number",
    "parse_number",
    "format_instant",
    "parse_instant",
    # Envelope
    "wrap_response",
    "unwrap_response",
    "JSON_ENCODERS",
    "json_default",
    "to_jsonable",
]
