"""JSON serialization utilities for text-column side payloads."""
import json
import logging

logger = logging.getLogger(__name__)


def json_dump(payload: object) -> str:
    """Serialize object to compact JSON string."""
    return json.dumps(payload, ensure_ascii=False)


def load_json_text(raw: str | None, default: object, label: str = "payload") -> object:
    """
    Deserialize a stored JSON column.

    Missing values return ``default`` quietly. Malformed values, or values of a
    different shape than ``default``, also return ``default`` but are logged:
    historical display must never fail on a corrupt row.
    """
    if raw is None or raw == "":
        return default
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        logger.warning(f"Corrupt {label} JSON, using empty default")
        return default
    if not isinstance(value, type(default)):
        logger.warning(
            f"Unexpected {label} JSON type {type(value).__name__}, using empty default"
        )
        return default
    return value
