# confbus

`confbus` keeps the settings of several applications in JSON files and
publishes them on a message bus. Each application's configuration is
published as an object on the bus. The object answers two methods,
`GetConfiguration` and `ChangeConfiguration`. When a value changes, the file
is rewritten and every subscriber of that object receives the full new
configuration.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Configuration files

A configuration file is a flat JSON object. Its values may be integers
(kept as unsigned 32-bit when they are not negative and as signed 32-bit
otherwise), strings or booleans. Any other value is an error when the file
is read, and so is an integer that fits neither range.

A change is refused in three cases:

* the key does not already exist;
* the new value is not of the same type as the old one;
* the file cannot be written. The old value is then put back.

The file is rewritten as JSON with sorted keys.

## The service

`confbus.service.Service(folder_path, bus)` claims the name
`com.system.configurationManager` on the bus. It then looks at every regular
file in `folder_path` whose name ends in `.json`. The file's name without the
extension is the application's name. Each file becomes an
`ApplicationConfigObject`, registered at:

```
/com/system/configurationManager/Application/<name>
```

The service prints an `application: <object path>` line for each one.

On the bus, `ChangeConfiguration` takes a key and a value, either a plain
value or a `Variant`. A refused change raises `BusError`. Its `name` is
`com.system.configurationManager.Error` and its `message` gives the reason.

## The sample application

`confbus.application.Application(path, bus, name="confManagerApplication1")`
reads two settings from its file:

```json
{
    "Timeout": 1000,
    "TimeoutPhrase": "Please stop me"
}
```

Once `start_event_loop()` is called, it prints `TimeoutPhrase` every
`Timeout` milliseconds. It also subscribes to the object of its own name on
the bus and takes up each announced configuration. A `Timeout` of zero or an
empty phrase is refused in the file. In an announcement the same values, or
a value of the wrong type, stop the application. It then reports the error
and `start_event_loop()` raises `ConfigurationError`.

## Using the pieces together

```python
from confbus.service import Bus, BusError, Service
from confbus.application import Application

bus = Bus()
service = Service("/path/to/folder", bus)
app = Application("/path/to/folder/confManagerApplication1.json", bus)

target = "/com/system/configurationManager/Application/confManagerApplication1"
print(bus.call(target, "GetConfiguration"))

bus.call(target, "ChangeConfiguration", "Timeout", 500)
print(app.timeout)  # 500

try:
    bus.call(target, "ChangeConfiguration", "Timeout", "fast")
except BusError as exc:
    print(exc.name, exc.message)
```

A single object can also be used on its own. It takes a callback that
receives each new configuration:

```python
from confbus.config_object import ApplicationConfigObject, ConfigurationError, Variant

obj = ApplicationConfigObject(
    "/path/to/folder/myapp.json",
    "/com/system/configurationManager/Application/myapp",
    lambda config: print("changed:", config),
)
try:
    obj.change_configuration("Timeout", Variant.of(2000))
except ConfigurationError as exc:
    print("refused:", exc)
```

## Commands

```
confbus-service
confbus-service -d /path/to/folder
```

This starts the service on a new bus and waits until it is interrupted.
Without arguments the folder is `$HOME/com.system.configurationManager`.

```
confbus-app
confbus-app -c /path/to/confManagerApplication1.json
```

This starts the sample application on a new bus. Without arguments the file
is `$HOME/com.system.configurationManager/confManagerApplication1.json`.

Either command rejects any other arguments. When it cannot start, it prints a
`Fatal error: ...` line and exits with status 1.

## What it does not do

The `Bus` lives inside one Python process. There is no transport between
processes, so the two commands, each started on its own, do not talk to each
other. A change reaches the application only when the service and the
application share one `Bus`, as in the example above.