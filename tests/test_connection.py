import ipaddress
import socket
import sys

import pytest

from portknock.config import Preset
from portknock.connection import (
    Connection,
    PortHit,
    parse_port_sequence,
    resolve_ip,
)


def test_parse_mixed_sequence():
    hits = parse_port_sequence(["1234", "5678:udp", "9101:tcp"], False)
    assert hits == [PortHit(1234, False), PortHit(5678, True), PortHit(9101, False)]


def test_parse_default_udp():
    hits = parse_port_sequence(["1234", "9101:tcp"], True)
    assert [hit.protocol for hit in hits] == ["udp", "tcp"]


def test_parse_invalid_protocol():
    with pytest.raises(ValueError, match="invalid protocol 'icmp'"):
        parse_port_sequence(["80:icmp"], False)


@pytest.mark.parametrize("entry", ["abc", "70000", "-1", ":udp", "1 2"])
def test_parse_invalid_port(entry):
    with pytest.raises(ValueError, match="is not valid"):
        parse_port_sequence([entry], False)


def test_parse_port_limits():
    hits = parse_port_sequence(["0", "65535:udp"], False)
    assert [hit.port for hit in hits] == [0, 65535]


def test_resolve_numeric_ipv4():
    assert resolve_ip("127.0.0.1", False, False) == ipaddress.IPv4Address("127.0.0.1")
    assert resolve_ip("127.0.0.1", True, False) == ipaddress.IPv4Address("127.0.0.1")


def test_resolve_wrong_family():
    with pytest.raises(ValueError, match="ipv6"):
        resolve_ip("127.0.0.1", False, True)


def test_connection_requires_host():
    with pytest.raises(ValueError):
        Connection(Preset(ports=["1"]))


def test_connection_rejects_bad_port():
    with pytest.raises(ValueError):
        Connection(Preset(host="127.0.0.1", ports=["99999"]))


def test_udp_knock_reaches_listener(capsys):
    with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as receiver:
        receiver.bind(("127.0.0.1", 0))
        receiver.settimeout(5)
        port = receiver.getsockname()[1]
        conn = Connection(
            Preset(host="127.0.0.1", ports=[f"{port}:udp"], verbose=True)
        )
        conn.execute_knock()
        data, sender = receiver.recvfrom(16)
    assert capsys.readouterr().out == f"hitting udp 127.0.0.1:{port}\n"
    assert data == b""
    assert sender[0] == "127.0.0.1"


def test_verbose_knock_output(capsys):
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen()
        port = listener.getsockname()[1]
        conn = Connection(
            Preset(host="127.0.0.1", ports=[str(port)], verbose=True, delay=1)
        )
        conn.execute_knock()
    assert capsys.readouterr().out == f"hitting tcp 127.0.0.1:{port}\n"


def test_exec_cmd_returns_status():
    preset = Preset(
        host="127.0.0.1", ports=[], command=f"{sys.executable} -c raise(SystemExit(3))"
    )
    assert Connection(preset).exec_cmd() == 3


def test_exec_cmd_suppressed():
    preset = Preset(
        host="127.0.0.1", ports=[], command=f"{sys.executable} -c raise(SystemExit(3))"
    )
    assert Connection(preset, no_command=True).exec_cmd() is None


def test_exec_cmd_without_command():
    assert Connection(Preset(host="127.0.0.1", ports=[])).exec_cmd() is None


def test_exec_cmd_spawn_failure(tmp_path):
    missing = tmp_path / "does-not-exist"
    preset = Preset(host="127.0.0.1", ports=[], command=str(missing))
    with pytest.raises(OSError, match="Could not spawn process"):
        Connection(preset).exec_cmd()