"""Declarations of control-plane actions and views, and parameter parsing."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from .errors import IllegalParameter, MissingParameter

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


@dataclass(frozen=True)
class ApiEndpoint:
    """A named action or view with its declared parameters."""

    name: str
    mandatory: tuple[str, ...] = ()
    optional: tuple[str, ...] = ()
    # alternative param name -> declared name
    param_aliases: Mapping[str, str] = field(default_factory=dict)

    def normalize(self, params: Mapping[str, Any] | None) -> dict[str, Any]:
        """Copy params, folding alias names onto their declared names."""
        normalized = dict(params or {})
        for alias, declared in self.param_aliases.items():
            if is_blank(normalized.get(declared)) and alias in normalized:
                normalized[declared] = normalized.pop(alias)
        return normalized

    def validate(self, params: Mapping[str, Any]) -> None:
        """Raise ``MissingParameter`` for the first absent or empty mandatory param."""
        for name in self.mandatory:
            if is_blank(params.get(name)):
                raise MissingParameter(name)

    def describe(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "mandatory": list(self.mandatory),
            "optional": list(self.optional),
        }


class ApiAction(ApiEndpoint):
    """Mutating command."""


class ApiView(ApiEndpoint):
    """Read-only query."""


def is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def parse_int(value: Any, name: str) -> int:
    """Parse a non-negative integer param given as int or decimal string."""
    if isinstance(value, bool):
        raise IllegalParameter(name)
    if isinstance(value, int):
        number = value
    else:
        text = str(value).strip()
        try:
            number = int(text)
        except ValueError:
            raise IllegalParameter(name) from None
    if number < 0:
        raise IllegalParameter(name)
    return number


def get_int(params: Mapping[str, Any], name: str) -> int | None:
    """Return the int param, or None when it is absent or empty."""
    value = params.get(name)
    if is_blank(value):
        return None
    return parse_int(value, name)


def get_bool(params: Mapping[str, Any], name: str, default: bool) -> bool:
    value = params.get(name)
    if is_blank(value):
        return default
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise IllegalParameter(name)


def get_ids(params: Mapping[str, Any], name: str) -> list[int]:
    """Parse a comma-separated list of ids; any malformed entry rejects the whole list."""
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        parts = [str(part) for part in value]
    else:
        parts = str(value or "").split(",")
    return [parse_int(part, name) for part in parts if part.strip()]
