# lightwatch

`lightwatch` watches a smart-light service that serves light state over HTTP.
Every two seconds it asks the service for its lights and prints what changed.
It only reads from the service; it never switches lights or changes them.

## Installing

```
pip install .
```

## Running

```
lightwatch -host localhost -port 8080
```

| Option | Other spelling | Default | Meaning |
|--------|----------------|---------|---------|
| `-host` | `--h` | `localhost` | Address of the light service |
| `-port` | `--p` | `8080` | Port of the light service |
| `-h` | `--help` | | Print the list of options and exit |

Each option takes exactly one value. The port is read as a 32-bit integer and
may be written in decimal, in octal with a leading `0`, or in hex with a
leading `0x`; text after the number is ignored. A bad value prints
`The parameter port has invalid arguments.` to standard error and exits with
status 1. A value given without an option in front of it is also an error.

The command prints `Polling <host>:<port>` and then polls until it is stopped
with Ctrl-C.

## What it asks the service for

- `GET /lights` returns the lights, each with `id`, `name` and `room`. A JSON
  array is expected; if an object is returned, its values are used.
- `GET /lights/<id>` returns one light with `id`, `name`, `room`, `on` and
  `brightness`. Brightness is on a scale of 0 to 255.

Requests use one kept-alive connection with a five-second timeout. A request
counts as failed if the connection fails or the status is not 200.

If the request for one light fails, it is tried up to three times, waiting
0.2, 0.4 and 0.8 seconds after each failed try. If the light still can't be
fetched, or its body is not valid JSON, it is left out of that poll.

## What it prints

The first time a light is seen, its whole state is printed as JSON indented by
four spaces, with the keys sorted. Brightness is shown as a percentage from 0
to 100, rounded to the nearest whole number:

```json
{
    "brightness": 50,
    "id": "1",
    "name": "Desk Lamp",
    "on": true,
    "room": "Office"
}
```

After that, each of `name`, `room`, `on` and `brightness` that changes is
printed as its own small object:

```json
{
    "id": "1",
    "on": false
}
```

A light that goes away is reported like this:

```
Desk Lamp (1) has been removed
```

Errors from HTTP requests and from JSON parsing go to standard error, for
example `HTTP GET /lights failed: 500` or
`HTTP GET /lights/1 failed: Connection Error`. The monitor keeps polling after
them. When the `/lights` request itself fails, nothing is compared and the
lights known from the previous poll are kept.

## Using it from Python

```python
from lightwatch.monitor import LightMonitor

with LightMonitor("localhost", 8080) as monitor:
    monitor.poll()
    print(monitor.lights)
```

`LightMonitor(host, port, out=None, err=None)` writes its reports to `out` and
its errors to `err`, which default to standard output and standard error.
`poll()` runs one poll, `lights` is a copy of the lights seen on the last
successful poll keyed by id, and `close()` (also called when the `with` block
ends) closes the connection.

`lightwatch.light.Light` holds one light, with the fields `id`, `name`,
`room`, `on` and `brightness`. `Light.from_json_api_concise(data)` reads the
listing form, `Light.from_json_api_full(data)` reads the detail form and
scales brightness to a percentage, and `to_json_full()` returns all five
fields as a dictionary. Missing fields take empty or zero defaults; a field of
the wrong JSON type raises `TypeError`.

`lightwatch.cli.parse_args(argv)` parses the options above into a namespace
with `host` and `port`, and `lightwatch.cli.main(argv)` runs the command.