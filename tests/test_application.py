import json
import threading
from pathlib import Path

import pytest

from confbus.application import APPLICATION_NAME, Application, get_file_path, main
from confbus.config_object import CHANGE_METHOD, ConfigurationError, Variant
from confbus.service import DEFAULT_FOLDER_NAME, OBJECT_PATH_PREFIX, Bus, Service


def write(path, data):
    path.write_text(json.dumps(data))
    return path


@pytest.fixture
def app_file(tmp_path):
    return write(tmp_path / "app.json", {"Timeout": 20, "TimeoutPhrase": "tick"})


def test_read_config_from_file(app_file):
    app = Application(app_file, Bus())
    assert app.timeout == 20
    assert app.timeout_phrase == "tick"


@pytest.mark.parametrize(
    "data",
    [
        {"Timeout": 0, "TimeoutPhrase": "tick"},
        {"Timeout": 20},
        {"TimeoutPhrase": "tick"},
        {"Timeout": 20, "TimeoutPhrase": ""},
    ],
)
def test_invalid_configuration_in_file(tmp_path, data):
    path = write(tmp_path / "app.json", data)
    with pytest.raises(ConfigurationError, match="Invalid configuration in file"):
        Application(path, Bus())


def test_timeout_not_a_number(tmp_path):
    path = write(tmp_path / "app.json", {"Timeout": "soon", "TimeoutPhrase": "tick"})
    with pytest.raises(ConfigurationError):
        Application(path, Bus())


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="Failed to open file"):
        Application(tmp_path / "absent.json", Bus())


def test_handle_configuration_changed(app_file):
    app = Application(app_file, Bus())
    app.handle_configuration_changed(
        {"Timeout": Variant.of(40), "TimeoutPhrase": Variant.of("tock"), "Other": Variant.of(True)}
    )
    assert app.timeout == 40
    assert app.timeout_phrase == "tock"


def test_handle_incomplete_signal(app_file):
    app = Application(app_file, Bus())
    with pytest.raises(ConfigurationError, match="Invalid configuration in body of signal"):
        app.handle_configuration_changed({"Timeout": Variant.of(40)})
    assert app.timeout == 20


def test_handle_wrong_type_in_signal(app_file):
    app = Application(app_file, Bus())
    with pytest.raises(ConfigurationError):
        app.handle_configuration_changed(
            {"Timeout": Variant.of("40"), "TimeoutPhrase": Variant.of("tock")}
        )
    assert app.timeout_phrase == "tick"


def test_loop_prints_phrase_then_stops(app_file, capsys):
    app = Application(app_file, Bus())
    stop = threading.Event()
    stop.set()
    app.loop(stop)
    assert capsys.readouterr().out == "tick\n"


def test_follows_service_changes(tmp_path):
    folder = tmp_path / "configs"
    folder.mkdir()
    path = write(folder / f"{APPLICATION_NAME}.json", {"Timeout": 20, "TimeoutPhrase": "tick"})
    bus = Bus()
    Service(folder, bus)
    app = Application(path, bus)
    bus.call(OBJECT_PATH_PREFIX + APPLICATION_NAME, CHANGE_METHOD, "Timeout", Variant.of(75))
    assert app.timeout == 75
    assert app.timeout_phrase == "tick"


def test_invalid_signal_stops_event_loop(app_file, capsys):
    bus = Bus()
    app = Application(app_file, bus)
    bus.emit(app.object_path, {"Timeout": Variant.of(0), "TimeoutPhrase": Variant.of("x")})
    with pytest.raises(ConfigurationError):
        app.start_event_loop()
    assert "Error while handling configurationChanged signal" in capsys.readouterr().err


def test_start_event_loop_returns_after_leave(app_file, capsys):
    bus = Bus()
    app = Application(app_file, bus)
    bus.leave_event_loop()
    app.start_event_loop()
    assert capsys.readouterr().out.startswith("tick\n")


def test_get_file_path_default(monkeypatch, tmp_path):
    monkeypatch.setenv("HOME", str(tmp_path))
    expected = tmp_path / DEFAULT_FOLDER_NAME / f"{APPLICATION_NAME}.json"
    assert Path(get_file_path([])) == expected


def test_get_file_path_flag():
    assert get_file_path(["-c", "/etc/app.json"]) == "/etc/app.json"


def test_get_file_path_errors():
    with pytest.raises(ValueError, match="Invalid flag: -d"):
        get_file_path(["-d", "/etc/app.json"])
    with pytest.raises(ValueError, match="Incorrect number of arguments"):
        get_file_path(["-c", "/etc/app.json", "extra"])


def test_main_missing_file(tmp_path, capsys):
    assert main(["-c", str(tmp_path / "absent.json")]) == 1
    assert capsys.readouterr().err.startswith("Fatal error:")