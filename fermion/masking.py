# Sensitive-data masking for JSON payloads, export rows and log records.
# Key names are matched case-insensitively; string values are additionally
# scanned for embedded `Name=value;` segments (connection-string style).

import logging
import re
from functools import lru_cache
from typing import Any, Iterable, Optional

import simplejson

from fermion.config import Config
from fermion.constants import F_IP, F_PAYLOAD, F_USER_NAME
from fermion.exceptions import MaskDepthExceededError, serialization_error_payload

logger = logging.getLogger(__name__)


@lru_cache(maxsize=256)
def _property_pattern(name: str) -> re.Pattern:
    return re.compile(r'("' + re.escape(name) + r'"\s*:\s*")(.*?)(")', re.IGNORECASE)


@lru_cache(maxsize=256)
def _assignment_pattern(name: str) -> re.Pattern:
    return re.compile(r"(" + re.escape(name) + r"=)([^;]+)", re.IGNORECASE)


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def _resolve(mask_pattern: Optional[str], sensitive_names: Optional[Iterable[str]]):
    pattern = Config.MASK_PATTERN if mask_pattern is None else mask_pattern
    names = list(Config.SENSITIVE_NAMES if sensitive_names is None else sensitive_names)
    return pattern, names


def mask_embedded(text: str, mask_pattern: Optional[str] = None, sensitive_names: Optional[Iterable[str]] = None) -> str:
    """Mask every `Name=value` segment of a string for each sensitive name.

    The value runs up to the next `;` or the end of the string. Matching is not
    anchored to word boundaries, so `Key=` also matches inside `ApiKey=`.
    """
    pattern, names = _resolve(mask_pattern, sensitive_names)
    for name in names:
        text = _assignment_pattern(name).sub(lambda m: m.group(1) + pattern, text)
    return text


def mask_raw_text(text: str, mask_pattern: Optional[str] = None, sensitive_names: Optional[Iterable[str]] = None) -> str:
    """Regex masking for text that could not be parsed as JSON.

    Replaces the value of `"Name": "value"` pairs and `Name=value` segments,
    leaving the rest of the text untouched.
    """
    pattern, names = _resolve(mask_pattern, sensitive_names)
    for name in names:
        text = _property_pattern(name).sub(lambda m: m.group(1) + pattern + m.group(3), text)
        text = _assignment_pattern(name).sub(lambda m: m.group(1) + pattern, text)
    return text


def mask_structure(
    value: Any,
    mask_pattern: Optional[str] = None,
    sensitive_names: Optional[Iterable[str]] = None,
    max_depth: Optional[int] = None,
) -> Any:
    """Return a masked copy of an already-parsed JSON value.

    Args:
        value: dict / list / str / int / Decimal / float / bool / None tree.
        mask_pattern: replacement for sensitive values.
        sensitive_names: property names whose values are always replaced.
        max_depth: maximum container nesting (defaults to Config.MAX_MASK_DEPTH).

    Returns:
        A new tree; the input is not modified.

    Raises:
        MaskDepthExceededError: if containers nest deeper than `max_depth`.
    """
    pattern, names = _resolve(mask_pattern, sensitive_names)
    lookup = {name.lower() for name in names}
    limit = Config.MAX_MASK_DEPTH if max_depth is None else max_depth
    return _mask_node(value, pattern, names, lookup, 0, limit)


def _mask_node(value, pattern, names, lookup, depth, limit):
    if isinstance(value, dict):
        if depth >= limit:
            raise MaskDepthExceededError(limit)
        return {
            key: pattern if str(key).lower() in lookup else _mask_node(item, pattern, names, lookup, depth + 1, limit)
            for key, item in value.items()
        }
    if isinstance(value, list):
        if depth >= limit:
            raise MaskDepthExceededError(limit)
        return [_mask_node(item, pattern, names, lookup, depth + 1, limit) for item in value]
    if isinstance(value, str):
        return mask_embedded(value, pattern, names)
    # numbers, booleans and null pass through
    return value


def mask_sensitive_data(
    data: Optional[str],
    mask_pattern: Optional[str] = None,
    sensitive_names: Optional[Iterable[str]] = None,
) -> Optional[str]:
    """Mask sensitive values in a JSON string.

    Args:
        data: JSON text (possibly malformed). None or "" is returned as is.
        mask_pattern: replacement string, default "***MASKED***".
        sensitive_names: case-insensitive property names to mask.

    Returns:
        Compact JSON with sensitive values masked, the regex-masked raw text
        when `data` is not valid JSON, or a SerializationError payload when the
        masked tree cannot be encoded.
    """
    if not data:
        return data
    pattern, names = _resolve(mask_pattern, sensitive_names)

    try:
        # numbers are read as Decimal so they are written back exactly
        parsed = simplejson.loads(data, use_decimal=True, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        logger.debug("Input is not valid JSON, using regex masking")
        return mask_raw_text(data, pattern, names)

    masked = mask_structure(parsed, pattern, names)
    try:
        return simplejson.dumps(masked, ensure_ascii=False, separators=(",", ":"), use_decimal=True, allow_nan=False)
    except (TypeError, ValueError) as exc:
        logger.error("Failed to serialize masked data: %s", exc)
        return serialization_error_payload(exc)


def mask_name(name: str) -> str:
    """Mask a person name keeping only the first character.

    Returns the original falsy input unchanged.
    """
    if not name:
        return name
    return name[0] + "***"


def mask_ip(ip: str) -> str:
    if not ip:
        return ip
    return "***.***.***.***"


PII_COLUMNS = {
    F_USER_NAME: mask_name,
    F_IP: mask_ip,
}


def mask_row(row: dict, mask_pattern: Optional[str] = None, sensitive_names: Optional[Iterable[str]] = None) -> dict:
    """Apply masking to an export row.

    Args:
        row: mapping of column name -> value.
        mask_pattern: forwarded to the payload masking.
        sensitive_names: forwarded to the payload masking.

    Returns:
        A new dict with PII columns and the JSON payload masked.
    """
    result = dict(row)
    for col in PII_COLUMNS:
        if col in result and result[col] is not None:
            result[col] = PII_COLUMNS[col](result[col])
    if result.get(F_PAYLOAD) is not None:
        payload = str(result[F_PAYLOAD])
        try:
            result[F_PAYLOAD] = mask_sensitive_data(payload, mask_pattern, sensitive_names)
        except MaskDepthExceededError:
            logger.warning("Payload of row nests too deeply, using regex masking")
            result[F_PAYLOAD] = mask_raw_text(payload, mask_pattern, sensitive_names)
    return result


class SensitiveDataFilter(logging.Filter):
    """Logging filter that masks secrets in the formatted log message.

    Messages that look like JSON documents go through the structural masker,
    everything else through the raw-text regexes.
    """

    def __init__(self, name: str = "", mask_pattern: Optional[str] = None, sensitive_names: Optional[Iterable[str]] = None):
        super().__init__(name)
        self.mask_pattern = mask_pattern
        self.sensitive_names = None if sensitive_names is None else list(sensitive_names)

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
        except (TypeError, ValueError):
            # mismatched format args are reported by Handler.handleError on emit
            return True
        if message.lstrip().startswith(("{", "[")):
            try:
                masked = mask_sensitive_data(message, self.mask_pattern, self.sensitive_names)
            except MaskDepthExceededError:
                masked = mask_raw_text(message, self.mask_pattern, self.sensitive_names)
        else:
            masked = mask_raw_text(message, self.mask_pattern, self.sensitive_names)
        if masked != message:
            record.msg = masked
            record.args = None
        return True
