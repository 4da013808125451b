"""Strict decoding of persisted documents into pydantic models.

Models decoded here are configured with ``extra="forbid"``, so stale or
foreign files carrying fields outside the schema are rejected instead of
being silently accepted as valid state.  Every violation is enumerated.
Fields are matched by their wire alias only, so a snake_case spelling of
an aliased field is reported as an unknown field.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

import yaml
from pydantic import BaseModel, ValidationError

from clusterforge.core.asset import PersistedStateError

M = TypeVar("M", bound=BaseModel)


def _format_location(loc: tuple[Any, ...]) -> str:
    return ".".join(str(part) for part in loc)


def format_validation_error(exc: ValidationError) -> str:
    """Render a pydantic ``ValidationError`` as ``; ``-joined messages."""
    messages: list[str] = []
    for err in exc.errors():
        location = _format_location(err["loc"])
        if err["type"] == "extra_forbidden":
            messages.append(f'unknown field "{location}"')
        elif location:
            messages.append(f"{location}: {err['msg']}")
        else:
            messages.append(err["msg"])
    return "; ".join(messages)


def validate_strict(model: type[M], payload: Any, filename: str) -> M:
    """Validate an already-parsed *payload* against *model*."""
    if not isinstance(payload, dict):
        raise PersistedStateError(
            f"failed to unmarshal {filename}: expected a mapping, "
            f"got {type(payload).__name__}"
        )
    try:
        # Documents use wire names only; Python attribute names are unknown keys.
        return model.model_validate(payload, by_alias=True, by_name=False)
    except ValidationError as exc:
        raise PersistedStateError(
            f"failed to unmarshal {filename}: {format_validation_error(exc)}"
        ) from exc


def decode_json_strict(model: type[M], data: bytes, filename: str) -> M:
    """Parse JSON *data* and validate it strictly against *model*."""
    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise PersistedStateError(
            f"failed to unmarshal {filename}: invalid JSON syntax"
        ) from exc
    return validate_strict(model, payload, filename)


def decode_yaml_strict(model: type[M], data: bytes, filename: str) -> M:
    """Parse YAML *data* and validate it strictly against *model*."""
    try:
        payload = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise PersistedStateError(
            f"failed to unmarshal {filename}: invalid YAML syntax: {exc}"
        ) from exc
    if payload is None:
        payload = {}
    return validate_strict(model, payload, filename)
