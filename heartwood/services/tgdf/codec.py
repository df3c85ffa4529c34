"""Recursive conversion between native values and tagged values.

All functions here are pure and total: they never raise for native or
tagged input. Anything the codec does not recognise is tagged ``unknown``
on the way in and returned unchanged on the way out.

Note on single-key mappings: a native mapping with exactly one key cannot
be told apart from a tagged value. ``to_tagged`` and ``ensure_tagged``
pass such mappings through untouched, and ``from_tagged`` interprets
them by their key. Use ``TgdfOptions(strict=True)`` to restrict
detection to the tag vocabulary.
"""

import math
import re
from collections.abc import Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, Optional

from heartwood.services.tgdf.models import (
    DEFAULT_OPTIONS,
    KNOWN_TAGS,
    MISSING,
    InvalidInstant,
    Tag,
    TgdfOptions,
)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# Numeric text JavaScript's Number() accepts besides plain integers
_DECIMAL_RE = re.compile(r"[+-]?(?:Infinity|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?)")
_RADIX_RE = re.compile(r"0[xXoObB][0-9a-fA-F]+")

# Largest magnitude JavaScript prints without exponent notation
_PLAIN_FLOAT_LIMIT = 1e21

# Smallest decimal exponent JavaScript still prints in plain notation (1e-6)
_PLAIN_MIN_EXPONENT = -6


def _resolve(options: Optional[TgdfOptions], overrides: dict[str, Any]) -> TgdfOptions:
    return (options or DEFAULT_OPTIONS).merged(**overrides)


# =============================================================================
# Scalars
# =============================================================================


def format_number(value: int | float | Decimal) -> str:
    """Render a number the way JavaScript's ``Number#toString`` does.

    Integers keep full precision. Integral floats drop the fractional
    part, and exponents are written ``1e+21`` / ``1e-7``.
    """
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if math.isinf(value):
            return "Infinity" if value > 0 else "-Infinity"
        if value.is_integer() and abs(value) < _PLAIN_FLOAT_LIMIT:
            return str(int(value))
        text = repr(value)
        if "e" in text:
            mantissa, exponent = text.split("e")
            if _PLAIN_MIN_EXPONENT <= int(exponent) < 0:
                return format(Decimal(text), "f")
            sign = "-" if exponent.startswith("-") else "+"
            digits = exponent.lstrip("+-").lstrip("0") or "0"
            text = f"{mantissa}e{sign}{digits}"
        return text
    if isinstance(value, int):
        return str(int(value))
    return str(value)


def parse_number(payload: Any) -> int | float:
    """Parse a ``number`` payload.

    Integer literals become ``int`` so large values survive unchanged.
    Decimal and exponent literals and ``Infinity`` become ``float``;
    ``0x``/``0o``/``0b`` literals become ``int``. Blank text is 0 and any
    other text (``"inf"``, ``"1_000"``) is NaN, mirroring JavaScript's
    ``Number()``.
    """
    if isinstance(payload, bool):
        return int(payload)
    if isinstance(payload, (int, float)):
        return payload
    if isinstance(payload, Decimal):
        return float(payload)
    if payload is None:
        return 0

    text = str(payload).strip()
    if not text:
        return 0
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    if _DECIMAL_RE.fullmatch(text):
        return float(text)
    if _RADIX_RE.fullmatch(text):
        try:
            return int(text, 0)
        except ValueError:
            return math.nan
    return math.nan


def format_instant(value: date) -> str:
    """Render a date or datetime as UTC ISO-8601 with milliseconds.

    Naive datetimes and plain dates are taken to be UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)

    return (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f".{value.microsecond // 1000:03d}Z"
    )


def parse_instant(payload: Any) -> datetime | InvalidInstant:
    """Parse an ``instant`` payload into an aware UTC datetime.

    Accepts ISO-8601 text (``Z`` or numeric offset, date-only allowed) and
    epoch milliseconds. Anything else yields ``InvalidInstant``.
    """
    if isinstance(payload, datetime):
        parsed = payload
    elif isinstance(payload, (int, float)) and not isinstance(payload, bool):
        try:
            return datetime.fromtimestamp(payload / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return InvalidInstant(payload)
    elif isinstance(payload, str):
        text = payload.strip()
        if text[-1:] in ("Z", "z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return InvalidInstant(payload)
    else:
        return InvalidInstant(payload)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _js_truthy(value: Any) -> bool:
    # Containers are always truthy in JavaScript, NaN is falsy
    if isinstance(value, (Mapping, list, tuple)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


# =============================================================================
# Detection
# =============================================================================


def is_tagged(obj: Any, strict: bool = False) -> bool:
    """Return True if ``obj`` looks like a tagged value.

    A tagged value is a non-sequence mapping with exactly one key. The key
    itself is not checked unless ``strict`` is set, in which case it must
    belong to the tag vocabulary.
    """
    if not isinstance(obj, Mapping) or len(obj) != 1:
        return False
    if strict:
        return next(iter(obj)) in KNOWN_TAGS
    return True


# =============================================================================
# Encoding
# =============================================================================


def to_tagged(value: Any, options: Optional[TgdfOptions] = None, **overrides: Any) -> Any:
    """Convert a native value into its tagged form.

    Args:
        value: Any native value
        options: Conversion options (defaults: deep, index-keyed arrays)
        **overrides: ``deep``, ``preserve_arrays`` or ``strict`` overrides

    Returns:
        A tagged value. Single-key mappings are returned unchanged.

    Example:
        >>> to_tagged([1, "a"], preserve_arrays=True)
        {'list': [{'number': '1'}, {'text': 'a'}]}
    """
    return _encode(value, _resolve(options, overrides))


def _encode(value: Any, opts: TgdfOptions) -> Any:
    if value is None or value is MISSING:
        return {Tag.NULL.value: None}

    if isinstance(value, str):
        return {Tag.TEXT.value: str.__str__(value)}

    if isinstance(value, bool):
        return {Tag.YESNO.value: value}

    if isinstance(value, (int, float, Decimal)):
        return {Tag.NUMBER.value: format_number(value)}

    if isinstance(value, InvalidInstant):
        return {Tag.INSTANT.value: str(value.raw)}

    if isinstance(value, date):
        return {Tag.INSTANT.value: format_instant(value)}

    if isinstance(value, (list, tuple)):
        if opts.preserve_arrays:
            return {Tag.LIST.value: [_encode(item, opts) for item in value] if opts.deep else list(value)}
        return {
            Tag.ITEMS.value: {
                str(index): _encode(item, opts) if opts.deep else item
                for index, item in enumerate(value)
            }
        }

    if isinstance(value, Mapping):
        if is_tagged(value, strict=opts.strict):
            return value
        return {
            Tag.OBJECT.value: {
                str(key): _encode(item, opts) if opts.deep else item
                for key, item in value.items()
            }
        }

    return {Tag.UNKNOWN.value: str(value)}


def ensure_tagged(value: Any, options: Optional[TgdfOptions] = None, **overrides: Any) -> Any:
    """Return ``value`` if it is already tagged, otherwise tag it."""
    opts = _resolve(options, overrides)
    if is_tagged(value, strict=opts.strict):
        return value
    return _encode(value, opts)


# =============================================================================
# Decoding
# =============================================================================


def from_tagged(tagged: Any, options: Optional[TgdfOptions] = None, **overrides: Any) -> Any:
    """Convert a tagged value back into a native value.

    Args:
        tagged: A tagged value (anything else is returned unchanged)
        options: Extraction options
        **overrides: ``deep``, ``preserve_arrays`` or ``strict`` overrides

    Returns:
        The native value. Unknown tags yield their payload, untagged
        recursively when it is itself a mapping.
    """
    return _decode(tagged, _resolve(options, overrides))


def _decode(item: Any, opts: TgdfOptions) -> Any:
    if not is_tagged(item, strict=opts.strict):
        return item

    ((tag, payload),) = item.items()

    if tag == Tag.TEXT:
        return payload
    if tag == Tag.NUMBER:
        return parse_number(payload)
    if tag == Tag.YESNO:
        return _js_truthy(payload)
    if tag == Tag.NULL:
        return None
    if tag in (Tag.INSTANT, Tag.DATE):
        return parse_instant(payload)

    if tag == Tag.LIST:
        if not opts.deep or not isinstance(payload, (list, tuple)):
            return payload
        return [_decode(element, opts) for element in payload]

    if tag == Tag.ITEMS and opts.preserve_arrays and isinstance(payload, Mapping):
        return _decode_items_as_list(payload, opts)

    if tag in (Tag.ITEMS, Tag.OBJECT):
        if not isinstance(payload, Mapping):
            return payload
        return {
            key: _decode(element, opts) if opts.deep else element
            for key, element in payload.items()
        }

    # Unrecognised tag: best-effort passthrough of the payload
    if opts.deep and isinstance(payload, Mapping):
        return _decode(payload, opts)
    return payload


def _decode_items_as_list(payload: Mapping, opts: TgdfOptions) -> list:
    indices = [int(key) for key in payload if isinstance(key, str) and _INTEGER_RE.fullmatch(key)]
    length = max(indices) + 1 if indices else 0

    result = []
    for index in range(max(length, 0)):
        key = str(index)
        if key not in payload:
            result.append(MISSING)
        elif opts.deep:
            result.append(_decode(payload[key], opts))
        else:
            result.append(payload[key])
    return result
