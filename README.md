# portknock

A port-knocking client. It sends a sequence of TCP and UDP hits to a host and
can then run a command, for example to open an SSH session. Settings you use
often can be saved as named presets, and a preset can be protected with a
password.

## Installation

```
pip install .
```

This installs the `connection` command. The same command line is also
available as `python -m portknock.cli`.

## Usage

```
connection [options] <host | preset> [port<:proto> ...]
```

Knock on three ports. A port uses TCP unless you add `:udp` to it, or pass
`-u` to make UDP the default for ports without a protocol of their own:

```
connection example.com 1234 5678:udp 9101:tcp
```

A port must be a whole number from 0 to 65535; the only protocols accepted are
`tcp` and `udp`.

Options:

- `-u`, `--udp`: use UDP for every port that has no protocol of its own
- `-d`, `--delay <t>`: wait `t` milliseconds after each hit (default 0)
- `-4`, `--ipv4` / `-6`, `--ipv6`: use only an address of that IP version
  (the two cannot be combined); without either, the first address found is used
- `-v`, `--verbose`: print each hit as it is sent, and the command before it runs
- `-c`, `--command <cmd>`: run a command after the knock
- `-n`, `--no-command`: do not run a command, even if the preset has one

A TCP hit is a non-blocking connection attempt on a fresh socket that is closed
straight away; a UDP hit is an empty datagram.

The command is split on single spaces and started directly, without a shell,
so quoting, pipes and variables are not interpreted. `connection` waits for it
to finish.

On an error `connection` prints `Error: ...` to standard error and exits with
status 1.

### Presets

```
connection --new home           # run the wizard to create preset "home"
connection home                 # knock using preset "home"
connection --reconfigure home   # run the wizard again for an existing preset
connection --list               # list all presets, sorted by name
connection --delete home        # delete one preset
connection --delete-all         # delete every preset, after you confirm
```

The preset options cannot be combined with each other or with any other
argument.

The wizard asks for the host, whether UDP is the default, the ports, the delay
(default 100 ms), the IP version, verbosity, an optional command, and whether
to password-protect the preset (default yes). The password is asked for twice.
You are asked for the password of a protected preset each time you use it.

When the first argument names a preset, the preset's settings are used and the
ports given on the command line are ignored. Options on the command line take
precedence over the preset: `-u` and `-n` are added to it, `-4` or `-6`
replaces its IP version, the larger of the two delays is used, and `-c`
replaces its command (and overrides `-n`).

Presets are stored as TOML files in the user configuration directory for
`connection` (as chosen by `platformdirs`). A protected preset holds only the
encrypted settings: JSON encrypted with AES-256-CBC under the SHA-256 hash of
the password, with a fixed IV and no salt. This keeps the settings from being
read at a glance; it is not a defence against a determined attacker.

## Using it from Python

```python
from portknock.config import Preset
from portknock.connection import Connection, parse_port_sequence

hits = parse_port_sequence(["1234", "5678:udp"], default_udp=False)

preset = Preset(host="example.com", ports=["1234", "5678:udp"], delay=50)
connection = Connection(preset)
connection.execute_knock()
status = connection.exec_cmd()  # exit status, or None if no command ran
```

`portknock.config` also provides `load_preset`, `store_preset`,
`delete_preset`, `delete_all_presets`, `list_presets`, `preset_exists`,
`encrypt_preset` and `decrypt_preset`. `portknock.connection.resolve_ip`
looks up a host and picks an address of the requested family.

## Development

```
pip install -e ".[test]"
pytest
```