"""Read-only configuration store consumed by the fix decision engine."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType

from fixgate.severity import Severity, parse_severity


class ConfigurationStore:
    """Immutable mapping from configuration key to raw string value.

    Lookups are case-sensitive exact-key matches. The store is built once
    per file and shared read-only between fix decisions.

    Example:
        >>> store = ConfigurationStore({"fixgate_diagnostic.F401.severity": "warning"})
        >>> store.get_severity("fixgate_diagnostic.F401.severity")
        <Severity.WARNING: 2>
    """

    __slots__ = ("_values",)

    def __init__(self, values: Mapping[str, str] | None = None) -> None:
        """Initialize the store from already-parsed key/value pairs.

        Args:
            values: Raw configuration values. Copied on construction.
        """
        self._values: Mapping[str, str] = MappingProxyType(dict(values or {}))

    @classmethod
    def merged(cls, *layers: Mapping[str, str] | ConfigurationStore) -> ConfigurationStore:
        """Build a store from several layers. Later layers take precedence."""
        result: dict[str, str] = {}
        for layer in layers:
            items = layer.as_dict() if isinstance(layer, ConfigurationStore) else layer
            result.update(items)
        return cls(result)

    def get(self, key: str) -> str | None:
        """Return the raw value for ``key``, or None if it is not present."""
        return self._values.get(key)

    def get_severity(self, key: str) -> Severity | None:
        """Return the parsed severity for ``key``.

        Returns:
            The Severity, or None if the key is not present.

        Raises:
            InvalidSeverityError: If the key is present but its value is not a
                recognized severity token.
        """
        raw = self._values.get(key)
        if raw is None:
            return None
        return parse_severity(raw, key=key)

    def get_bool(self, key: str) -> bool | None:
        """Return ``key`` as a boolean, or None when absent or not true/false."""
        raw = self._values.get(key)
        if raw is None:
            return None
        value = raw.strip().lower()
        if value == "true":
            return True
        if value == "false":
            return False
        return None

    def as_dict(self) -> dict[str, str]:
        """Return a plain copy of the stored values."""
        return dict(self._values)

    def keys(self) -> list[str]:
        """Return all keys in insertion order."""
        return list(self._values)

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        return f"ConfigurationStore({dict(self._values)!r})"
