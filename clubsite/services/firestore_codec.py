"""Conversion between plain JSON values and Firestore REST typed values."""

from __future__ import annotations

from typing import Any, Dict


def encode_value(value: Any) -> Dict[str, Any]:
    """Wrap a JSON-compatible Python value in a Firestore ``Value``."""
    if value is None:
        return {'nullValue': None}
    # bool first: it is a subclass of int
    if isinstance(value, bool):
        return {'booleanValue': value}
    if isinstance(value, int):
        return {'integerValue': str(value)}
    if isinstance(value, float):
        return {'doubleValue': value}
    if isinstance(value, str):
        return {'stringValue': value}
    if isinstance(value, (list, tuple)):
        return {'arrayValue': {'values': [encode_value(item) for item in value]}}
    if isinstance(value, dict):
        return {'mapValue': {'fields': encode_fields(value)}}
    raise TypeError(f"Cannot encode {type(value).__name__} as a Firestore value")


def encode_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key): encode_value(item) for key, item in data.items()}


def decode_value(value: Dict[str, Any]) -> Any:
    """Unwrap a Firestore ``Value`` into a plain Python value."""
    if 'nullValue' in value:
        return None
    if 'booleanValue' in value:
        return bool(value['booleanValue'])
    if 'integerValue' in value:
        return int(value['integerValue'])
    if 'doubleValue' in value:
        return float(value['doubleValue'])
    if 'stringValue' in value:
        return value['stringValue']
    if 'timestampValue' in value:
        return value['timestampValue']
    if 'referenceValue' in value:
        return value['referenceValue']
    if 'bytesValue' in value:
        return value['bytesValue']
    if 'geoPointValue' in value:
        return dict(value['geoPointValue'])
    if 'arrayValue' in value:
        return [decode_value(item) for item in value['arrayValue'].get('values', [])]
    if 'mapValue' in value:
        return decode_fields(value['mapValue'].get('fields', {}))
    raise ValueError(f"Unknown Firestore value type: {sorted(value)}")


def decode_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    return {key: decode_value(item) for key, item in fields.items()}


__all__ = ['encode_value', 'encode_fields', 'decode_value', 'decode_fields']
