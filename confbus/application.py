"""An application that prints a phrase periodically and follows configuration changes."""

from __future__ import annotations

import json
import sys
import threading
from collections.abc import Mapping, Sequence
from pathlib import Path

from confbus.config_object import ConfigurationError, Variant, VariantType
from confbus.service import DEFAULT_FOLDER_NAME, OBJECT_PATH_PREFIX, Bus

APPLICATION_NAME = "confManagerApplication1"

_UINT32_MAX = 2**32 - 1


def _as_uint(value: object, path: Path) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)) and 0 <= value <= _UINT32_MAX:
        return int(value)
    raise ConfigurationError(f"Timeout is not an unsigned integer in file: {path}")


def _as_string(value: object, path: Path) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float)):
        return str(value)
    raise ConfigurationError(f"TimeoutPhrase is not a string in file: {path}")


class Application:
    """Prints TimeoutPhrase every Timeout milliseconds."""

    def __init__(self, path: str | Path, bus: Bus, name: str = APPLICATION_NAME) -> None:
        self.path = Path(path)
        self.object_path = OBJECT_PATH_PREFIX + name
        self._bus = bus
        self._lock = threading.Lock()
        self._timeout = 0
        self._phrase = ""
        self._stop = threading.Event()
        self._failure: ConfigurationError | None = None
        self.read_config_from_file()
        bus.subscribe(self.object_path, self._on_configuration_changed)

    @property
    def timeout(self) -> int:
        with self._lock:
            return self._timeout

    @property
    def timeout_phrase(self) -> str:
        with self._lock:
            return self._phrase

    def read_config_from_file(self) -> None:
        """Load Timeout and TimeoutPhrase from the configuration file."""
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
        timeout = _as_uint(root["Timeout"], self.path) if "Timeout" in root else 0
        phrase = _as_string(root["TimeoutPhrase"], self.path) if "TimeoutPhrase" in root else ""
        if timeout == 0 or phrase == "":
            raise ConfigurationError(f"Invalid configuration in file: {self.path}")
        with self._lock:
            self._timeout = timeout
            self._phrase = phrase

    def handle_configuration_changed(self, config: Mapping[str, Variant]) -> None:
        """Apply a changed configuration received as a signal."""
        timeout = 0
        phrase = ""
        for key, value in config.items():
            if key == "Timeout":
                timeout = int(self._expect(key, value, VariantType.UINT32))
            elif key == "TimeoutPhrase":
                phrase = str(self._expect(key, value, VariantType.STRING))
        if timeout == 0 or phrase == "":
            raise ConfigurationError(f"Invalid configuration in body of signal: {self.path}")
        with self._lock:
            self._timeout = timeout
            self._phrase = phrase

    def _expect(self, key: str, value: Variant, kind: VariantType) -> int | str | bool:
        if value.type is not kind:
            raise ConfigurationError(f"Wrong type of {key} in body of signal: {self.path}")
        return value.value

    def _on_configuration_changed(self, config: Mapping[str, Variant]) -> None:
        try:
            self.handle_configuration_changed(config)
        except ConfigurationError as exc:
            print(f"Error while handling configurationChanged signal: {exc}", file=sys.stderr)
            self._failure = exc
            self._stop.set()
            self._bus.leave_event_loop()

    def loop(self, stop: threading.Event) -> None:
        """Print the phrase, then sleep Timeout ms, until stop is set."""
        while True:
            with self._lock:
                timeout = self._timeout
                print(self._phrase, flush=True)
            if stop.wait(timeout / 1000):
                return

    def start_event_loop(self) -> None:
        """Run the printing loop and follow signals until the bus loop is left."""
        worker = threading.Thread(target=self.loop, args=(self._stop,), daemon=True)
        worker.start()
        try:
            self._bus.enter_event_loop()
        finally:
            self._stop.set()
            worker.join()
        if self._failure is not None:
            raise self._failure


def get_file_path(argv: Sequence[str]) -> str:
    """Return the configuration file given by "-c <file>", or the default one."""
    args = list(argv)
    if len(args) not in (0, 2):
        raise ValueError(f"Incorrect number of arguments: {len(args) + 1}")
    if not args:
        return str(Path.home() / DEFAULT_FOLDER_NAME / f"{APPLICATION_NAME}.json")
    flag, value = args
    if flag != "-c":
        raise ValueError(f"Invalid flag: {flag}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run the application."""
    args = sys.argv[1:] if argv is None else argv
    try:
        path = get_file_path(args)
        app = Application(path, Bus())
        app.start_event_loop()
    except (ValueError, OSError, ConfigurationError) as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())