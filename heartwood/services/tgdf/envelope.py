"""Response envelopes and JSON helpers.

Every API response and pipeline output is wrapped as::

    {<envelope_type>: {"version": ..., "data": <tagged>, "timestamp": {"instant": ...}}}
"""

import math
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Callable, Optional

from heartwood.services.tgdf.codec import ensure_tagged, format_instant, format_number, from_tagged
from heartwood.services.tgdf.models import (
    TGDF_VERSION,
    EnvelopeType,
    InvalidInstant,
    TgdfOptions,
    _Missing,
)


def wrap_response(
    data: Any,
    envelope_type: str | EnvelopeType = EnvelopeType.RESPONSE,
    tgdf: bool = True,
    version: str = TGDF_VERSION,
    now: Optional[datetime] = None,
    options: Optional[TgdfOptions] = None,
) -> dict[str, Any]:
    """Wrap ``data`` in a response envelope.

    Args:
        data: Payload to transport
        envelope_type: Outer key of the envelope ("response", "error", ...)
        tgdf: Tag the payload (when False it is embedded raw)
        version: Format version recorded in the envelope
        now: Timestamp to record (current UTC time if None)
        options: Conversion options used when tagging

    Returns:
        The envelope mapping
    """
    key = envelope_type.value if isinstance(envelope_type, EnvelopeType) else envelope_type
    payload = ensure_tagged(data, options) if tgdf else data
    stamp = now or datetime.now(timezone.utc)

    return {
        key: {
            "version": version,
            "data": payload,
            "timestamp": {"instant": format_instant(stamp)},
        }
    }


def unwrap_response(
    envelope: Any,
    tgdf: bool = True,
    options: Optional[TgdfOptions] = None,
) -> tuple[Optional[str], Any]:
    """Split an envelope into its type and (untagged) data.

    Returns ``(None, envelope)`` when the value is not an envelope.
    """
    if not isinstance(envelope, Mapping):
        return None, envelope

    for key, body in envelope.items():
        if isinstance(body, Mapping) and "data" in body and "version" in body:
            data = body["data"]
            return key, from_tagged(data, options) if tgdf else data

    return None, envelope


# =============================================================================
# JSON serialisation of native results
# =============================================================================

JSON_ENCODERS: dict[type, Callable[[Any], Any]] = {
    datetime: format_instant,
    date: format_instant,
    Decimal: lambda value: int(value) if value.is_finite() and value == value.to_integral_value() else float(value),
    _Missing: lambda _: None,
    InvalidInstant: lambda value: value.raw,
}


def json_default(obj: Any) -> Any:
    """``default`` hook for ``json.dumps`` covering codec types."""
    for kind, encoder in JSON_ENCODERS.items():
        if isinstance(obj, kind):
            return encoder(obj)
    if isinstance(obj, (set, frozenset, tuple)):
        return list(obj)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def to_jsonable(value: Any) -> Any:
    """Recursively convert a native value into JSON-compatible types."""
    if value is None or isinstance(value, (str, bool, int)):
        return value
    if isinstance(value, float):
        # JSON has no NaN/Infinity; keep the JavaScript spelling as text
        return value if math.isfinite(value) else format_number(value)
    if isinstance(value, Mapping):
        return {str(key): to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(item) for item in value]
    try:
        return json_default(value)
    except TypeError:
        return str(value)
