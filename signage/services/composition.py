"""COMPOSITION content envelope.

Only the canvas size and the overlay effect are read here; the scene itself
travels to the player untouched as `payload`.
"""
import json
from typing import Any

from signage.errors import MalformedContentError, ValidationFailed

ENVELOPE_VERSION = 1
DEFAULT_WIDTH = 1920
DEFAULT_HEIGHT = 1080
_ENVELOPE_KEYS = {"version", "width", "height", "meta", "payload"}


def _dimension(raw: dict, key: str, default: int) -> float:
    if raw.get(key) is None:
        return default
    value = raw[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedContentError(f"Composition {key} must be a number")
    if value <= 0:
        raise MalformedContentError(f"Composition {key} must be positive")
    return value


def _meta(decoded: dict) -> dict:
    meta = decoded.get("meta")
    if meta is None:
        return {}
    if not isinstance(meta, dict):
        raise MalformedContentError("Composition meta must be an object")
    return meta


def parse_composition(raw: str | None) -> dict[str, Any]:
    if raw is None or not str(raw).strip():
        raise MalformedContentError("Composition data is empty")
    try:
        decoded = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedContentError(f"Composition data is not valid JSON: {exc}") from exc
    if not isinstance(decoded, dict):
        raise MalformedContentError("Composition data must be a JSON object")

    width = _dimension(decoded, "width", DEFAULT_WIDTH)
    height = _dimension(decoded, "height", DEFAULT_HEIGHT)
    meta = _meta(decoded)

    if "payload" in decoded:
        version = decoded.get("version", ENVELOPE_VERSION)
        effect = meta.get("effect")
        payload = decoded.get("payload")
    else:
        # Editor output: `fabric` scene (or bare scene keys) beside the canvas fields.
        version = 0
        effect = meta.get("effect") or decoded.get("effect")
        if "fabric" in decoded:
            payload = decoded["fabric"]
        else:
            payload = {k: v for k, v in decoded.items() if k not in _ENVELOPE_KEYS and k != "effect"}

    return {
        "version": version,
        "width": width,
        "height": height,
        "meta": {"effect": effect},
        "payload": payload,
    }


def validate_composition_data(raw: str | None) -> str:
    try:
        parse_composition(raw)
    except MalformedContentError as exc:
        raise ValidationFailed.field("data", str(exc)) from exc
    return raw
