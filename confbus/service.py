"""Configuration service: publishes every application's configuration on a bus."""

from __future__ import annotations

import functools
import sys
import threading
from collections import defaultdict
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path
from typing import Any

from confbus.config_object import (
    CHANGE_METHOD,
    GET_METHOD,
    ApplicationConfigObject,
    ConfigurationError,
)

SERVICE_NAME = "com.system.configurationManager"
OBJECT_PATH_PREFIX = "/com/system/configurationManager/Application/"
ERROR_NAME = "com.system.configurationManager.Error"
DEFAULT_FOLDER_NAME = "com.system.configurationManager"


class BusError(Exception):
    """An error reply from the bus, carrying an error name and a message."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(message)
        self.name = name
        self.message = message


class Bus:
    """An in-process message bus with named objects, method calls and signals."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._names: set[str] = set()
        self._objects: dict[str, Mapping[str, Callable[..., Any]]] = {}
        self._subscribers: defaultdict[str, list[Callable[[Any], None]]] = defaultdict(list)
        self._stopped = threading.Event()

    def request_name(self, name: str) -> None:
        """Claim a well-known name; each name has one owner."""
        with self._lock:
            if name in self._names:
                raise BusError("NameHasOwner", f"Name already owned: {name}")
            self._names.add(name)

    def register(self, object_path: str, obj: Mapping[str, Callable[..., Any]]) -> None:
        """Publish an object as a mapping of method names to callables."""
        with self._lock:
            if object_path in self._objects:
                raise BusError("ObjectPathInUse", f"Object already registered: {object_path}")
            self._objects[object_path] = dict(obj)

    def call(self, object_path: str, method: str, *args: Any) -> Any:
        """Call a method of a registered object and return its reply."""
        with self._lock:
            methods = self._objects.get(object_path)
        if methods is None:
            raise BusError("UnknownObject", f"Unknown object: {object_path}")
        handler = methods.get(method)
        if handler is None:
            raise BusError("UnknownMethod", f"Unknown method: {method}")
        try:
            return handler(*args)
        except ConfigurationError as exc:
            raise BusError(ERROR_NAME, str(exc)) from exc

    def subscribe(self, object_path: str, handler: Callable[[Any], None]) -> None:
        """Receive every signal emitted by the object at object_path."""
        with self._lock:
            self._subscribers[object_path].append(handler)

    def emit(self, object_path: str, payload: Any) -> None:
        """Deliver a signal to the subscribers of object_path."""
        with self._lock:
            handlers = list(self._subscribers.get(object_path, ()))
        for handler in handlers:
            handler(payload)

    def enter_event_loop(self) -> None:
        """Block until the event loop is left."""
        self._stopped.wait()

    def leave_event_loop(self) -> None:
        """Make enter_event_loop return, now or as soon as it is entered."""
        self._stopped.set()


class Service:
    """Publishes one configuration object per JSON file in a folder."""

    def __init__(self, folder_path: str | Path, bus: Bus) -> None:
        self.folder_path = Path(folder_path)
        self._bus = bus
        self.objects: list[ApplicationConfigObject] = []
        bus.request_name(SERVICE_NAME)
        self.init_objects()

    def init_objects(self) -> None:
        """Create and register an object for every .json file in the folder."""
        for entry in sorted(self.folder_path.iterdir()):
            if not (entry.is_file() and entry.suffix == ".json"):
                continue
            object_path = OBJECT_PATH_PREFIX + entry.stem
            print(f"application: {object_path}", flush=True)
            obj = ApplicationConfigObject(
                entry, object_path, functools.partial(self._bus.emit, object_path)
            )
            self._bus.register(
                object_path,
                {CHANGE_METHOD: obj.change_configuration, GET_METHOD: obj.get_configuration},
            )
            self.objects.append(obj)

    def start_event_loop(self) -> None:
        """Serve requests until the bus event loop is left."""
        print("Starting configuration service", flush=True)
        self._bus.enter_event_loop()


def get_folder_path(argv: Sequence[str]) -> str:
    """Return the configuration folder given by "-d <folder>", or the default one."""
    args = list(argv)
    if len(args) not in (0, 2):
        raise ValueError(f"Incorrect number of arguments: {len(args) + 1}")
    if not args:
        return str(Path.home() / DEFAULT_FOLDER_NAME)
    flag, value = args
    if flag != "-d":
        raise ValueError(f"Invalid flag: {flag}")
    return value


def main(argv: Sequence[str] | None = None) -> int:
    """Run the configuration service."""
    args = sys.argv[1:] if argv is None else argv
    try:
        folder = get_folder_path(args)
        service = Service(folder, Bus())
        service.start_event_loop()
    except (ValueError, OSError, ConfigurationError, BusError) as exc:
        print(f"Fatal error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())