"""Field-level validation errors and their aggregation.

Validators never fail fast: they return every ``FieldError`` they find, and
the caller raises a single ``AggregateValidationError`` so the operator
sees the complete diagnostic in one pass.

Rendering follows the ``<path>: <Kind>: <detail>`` convention::

    Platform: Unsupported value: "aws": supported values: "none"
    Networking.MachineNetwork: Too many: 2: must have at most 1 items
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterable, Sequence
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from clusterforge.core.asset import PersistedStateError


class FieldErrorType(str, Enum):
    REQUIRED = "Required value"
    INVALID = "Invalid value"
    NOT_SUPPORTED = "Unsupported value"
    TOO_MANY = "Too many"


def _quote(value: Any) -> str:
    if isinstance(value, str):
        return json.dumps(value)
    return str(value)


class FieldError(BaseModel):
    """A single rule violation at a field path."""

    model_config = ConfigDict(frozen=True)

    kind: FieldErrorType
    field: str
    bad_value: Any = None
    detail: str = ""

    def __str__(self) -> str:
        if self.kind == FieldErrorType.REQUIRED:
            body = self.kind.value
            if self.detail:
                body += f": {self.detail}"
        elif self.kind == FieldErrorType.TOO_MANY:
            body = f"{self.kind.value}: {self.bad_value}: {self.detail}"
        else:
            body = f"{self.kind.value}: {_quote(self.bad_value)}"
            if self.detail:
                body += f": {self.detail}"
        return f"{self.field}: {body}"


def field_path(*parts: str) -> str:
    """Join path segments into a dotted field path."""
    return ".".join(parts)


def required(path: str, detail: str = "") -> FieldError:
    return FieldError(kind=FieldErrorType.REQUIRED, field=path, detail=detail)


def invalid(path: str, value: Any, detail: str = "") -> FieldError:
    return FieldError(
        kind=FieldErrorType.INVALID, field=path, bad_value=value, detail=detail
    )


def not_supported(path: str, value: Any, supported: Sequence[str]) -> FieldError:
    detail = "supported values: " + ", ".join(json.dumps(s) for s in supported)
    return FieldError(
        kind=FieldErrorType.NOT_SUPPORTED, field=path, bad_value=value, detail=detail
    )


def too_many(path: str, actual: int, maximum: int) -> FieldError:
    return FieldError(
        kind=FieldErrorType.TOO_MANY,
        field=path,
        bad_value=actual,
        detail=f"must have at most {maximum} items",
    )


class AggregateValidationError(PersistedStateError):
    """Every rule violation found in one validation pass.

    A single violation renders as its own message; several render as
    ``[first, second, ...]``.  An optional *prefix* names the document.
    """

    def __init__(self, errors: Iterable[FieldError], prefix: str = "") -> None:
        self.errors: list[FieldError] = list(errors)
        self.prefix = prefix
        super().__init__(self._render())

    def _render(self) -> str:
        messages = [str(e) for e in self.errors]
        body = messages[0] if len(messages) == 1 else "[" + ", ".join(messages) + "]"
        return f"{self.prefix}: {body}" if self.prefix else body


def raise_if_errors(errors: Sequence[FieldError], prefix: str = "") -> None:
    """Raise ``AggregateValidationError`` if *errors* is non-empty."""
    if errors:
        raise AggregateValidationError(errors, prefix=prefix)

_DNS_LABEL = re.compile(r"^[a-z0-9]([-a-z0-9]*[a-z0-9])?$")


def is_dns_subdomain(value: str) -> bool:
    """True if *value* is a lowercase RFC 1123 subdomain."""
    if not value or len(value) > 253:
        return False
    return all(_DNS_LABEL.match(label) for label in value.rstrip(".").split("."))
