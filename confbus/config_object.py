"""Per-application configuration object: typed values backed by a JSON file."""

from __future__ import annotations

import json
import threading
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Union

INTERFACE_NAME = "com.system.configurationManager.Application.Configuration"
CHANGE_METHOD = "ChangeConfiguration"
GET_METHOD = "GetConfiguration"
SIGNAL_NAME = "configurationChanged"

_UINT32_MAX = 2**32 - 1
_INT32_MIN = -(2**31)
_INT32_MAX = 2**31 - 1

Scalar = Union[int, str, bool]


class ConfigurationError(Exception):
    """Raised when a configuration cannot be read, changed or saved."""


class VariantType(str, Enum):
    """Type signatures of the values a configuration may hold."""

    UINT32 = "u"
    INT32 = "i"
    STRING = "s"
    BOOLEAN = "b"


def _integral(value: object) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _matches(kind: VariantType, value: object) -> bool:
    if kind is VariantType.BOOLEAN:
        return isinstance(value, bool)
    if kind is VariantType.STRING:
        return isinstance(value, str)
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    if kind is VariantType.UINT32:
        return 0 <= value <= _UINT32_MAX
    return _INT32_MIN <= value <= _INT32_MAX


@dataclass(frozen=True)
class Variant:
    """A value tagged with its type signature."""

    type: VariantType
    value: Scalar

    def __post_init__(self) -> None:
        kind = VariantType(self.type)
        object.__setattr__(self, "type", kind)
        if not _matches(kind, self.value):
            raise ValueError(f"Value {self.value!r} does not fit type {kind.value!r}")

    @classmethod
    def of(cls, value: object) -> Variant:
        """Wrap a plain value, choosing its type the way JSON values are read."""
        if isinstance(value, bool):
            return cls(VariantType.BOOLEAN, value)
        if isinstance(value, str):
            return cls(VariantType.STRING, value)
        number = _integral(value)
        if number is None:
            raise TypeError(f"Unsupported value type: {type(value).__name__}")
        if 0 <= number <= _UINT32_MAX:
            return cls(VariantType.UINT32, number)
        if _INT32_MIN <= number <= _INT32_MAX:
            return cls(VariantType.INT32, number)
        raise ValueError(f"Integer out of range: {number}")


class ApplicationConfigObject:
    """Holds one application's configuration and keeps its file in sync."""

    def __init__(
        self,
        path: str | Path,
        object_path: str,
        emit: Callable[[dict[str, Variant]], None],
    ) -> None:
        self.path = Path(path)
        self.object_path = str(object_path)
        self._emit = emit
        self._lock = threading.RLock()
        self._values: dict[str, Variant] = {}
        self.read_configuration()

    def read_configuration(self) -> None:
        """Load the configuration file into memory."""
        with self._lock:
            try:
                text = self.path.read_text(encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(f"Failed to open file: {self.path}") from exc
            try:
                root = json.loads(text)
            except json.JSONDecodeError as exc:
                raise ConfigurationError(f"Failed to parse file: {self.path}: {exc}") from exc
            if not isinstance(root, dict):
                raise ConfigurationError(f"Configuration is not an object in file: {self.path}")
            for key in sorted(root):
                try:
                    self._values[key] = Variant.of(root[key])
                except (TypeError, ValueError) as exc:
                    raise ConfigurationError(
                        f"Unknown type: {key} in file: {self.path}"
                    ) from exc

    def save_configuration(self) -> None:
        """Write the in-memory configuration back to its file."""
        with self._lock:
            document = {key: variant.value for key, variant in sorted(self._values.items())}
            try:
                handle = open(self.path, "w", encoding="utf-8")
            except OSError as exc:
                raise ConfigurationError(f"Failed to open file: {self.path}") from exc
            try:
                with handle:
                    json.dump(document, handle, indent=3, ensure_ascii=False)
                    handle.write("\n")
            except OSError as exc:
                raise ConfigurationError(
                    f"Failed to write configuration in file: {self.path}"
                ) from exc

    def change_configuration(self, key: str, value: Variant | Scalar) -> None:
        """Set one existing key to a value of the same type, save, and emit the change."""
        if not isinstance(value, Variant):
            try:
                value = Variant.of(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Incorrect value for the key: {key}") from exc
        with self._lock:
            old_value = self._values.get(key)
            if old_value is None:
                raise ConfigurationError(f"Incorrect key: {key}")
            if old_value.type is not value.type:
                raise ConfigurationError(f"Incorrect value for the key: {key}")
            self._values[key] = value
            try:
                self.save_configuration()
            except ConfigurationError as exc:
                self._values[key] = old_value
                raise ConfigurationError(f"Failed to save configuration: {exc}") from exc
            snapshot = dict(self._values)
        self._emit(snapshot)

    def get_configuration(self) -> dict[str, Variant]:
        """Return a copy of the whole configuration."""
        with self._lock:
            return dict(self._values)