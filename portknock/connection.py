"""Resolving the target and sending the knock sequence."""

from __future__ import annotations

import ipaddress
import re
import socket
import subprocess
import time
from dataclasses import dataclass

from portknock.config import Preset

IPAddress = ipaddress.IPv4Address | ipaddress.IPv6Address

_PORT_RE = re.compile(r"\+?[0-9]+")


@dataclass(frozen=True)
class PortHit:
    """One port in the knock sequence and whether it is hit over UDP."""

    port: int
    udp: bool = False

    @property
    def protocol(self) -> str:
        return "udp" if self.udp else "tcp"


def _parse_port(text: str) -> int:
    if _PORT_RE.fullmatch(text):
        value = int(text)
        if value <= 0xFFFF:
            return value
    raise ValueError(f"Given Port '{text}' is not valid")


def parse_port_sequence(entries: list[str], default_udp: bool) -> list[PortHit]:
    """Parse entries of the form ``port`` or ``port:tcp``/``port:udp``."""
    hits = []
    for entry in entries:
        port_text, sep, proto = entry.partition(":")
        if not sep:
            hits.append(PortHit(_parse_port(entry), default_udp))
        elif proto in ("tcp", "udp"):
            hits.append(PortHit(_parse_port(port_text), proto == "udp"))
        else:
            raise ValueError(f"Given port '{entry}' has invalid protocol '{proto}'")
    return hits


def resolve_ip(host: str, ipv4: bool, ipv6: bool) -> IPAddress:
    """Look up ``host`` and pick the first address of the requested family."""
    try:
        infos = socket.getaddrinfo(host, None)
    except (socket.gaierror, UnicodeError) as exc:
        raise OSError(f"Error looking up host '{host}'") from exc

    for family, _type, _proto, _canon, sockaddr in infos:
        if family not in (socket.AF_INET, socket.AF_INET6):
            continue
        ip = ipaddress.ip_address(str(sockaddr[0]).split("%", 1)[0])
        if not ipv4 and not ipv6:
            return ip
        if ipv4 and ip.version == 4:
            return ip
        if ipv6 and ip.version == 6:
            return ip

    kind = "ipv4" if ipv4 else "ipv6"
    raise ValueError(
        f"Could not find suitable IP Address for type '{kind}' and host {host}"
    )


class Connection:
    """A resolved target with its port sequence, ready to knock."""

    def __init__(self, preset: Preset, no_command: bool = False) -> None:
        if not preset.host:
            raise ValueError("No host given")
        self.preset = preset
        self.no_command = no_command
        self.port_sequence = parse_port_sequence(preset.ports, preset.udp)
        self.ip = resolve_ip(preset.host, preset.ipv4, preset.ipv6)

    @property
    def _family(self) -> int:
        return socket.AF_INET if self.ip.version == 4 else socket.AF_INET6

    def execute_knock(self) -> None:
        """Hit every port of the sequence in order, waiting the configured delay after each."""
        with socket.socket(self._family, socket.SOCK_DGRAM, socket.IPPROTO_UDP) as udp_socket:
            for hit in self.port_sequence:
                address = (str(self.ip), hit.port)
                if self.preset.verbose:
                    print(f"hitting {hit.protocol} {self.ip}:{hit.port}")

                if hit.udp:
                    udp_socket.sendto(b"", address)
                else:
                    # A fresh socket per hit: closing it is what aborts the attempt.
                    with socket.socket(
                        self._family, socket.SOCK_STREAM, socket.IPPROTO_TCP
                    ) as tcp_socket:
                        tcp_socket.setblocking(False)
                        tcp_socket.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
                        # The port is most likely closed; failure is expected.
                        tcp_socket.connect_ex(address)

                time.sleep(self.preset.delay / 1000)

    def exec_cmd(self) -> int | None:
        """Run the configured command and return its exit status, or None if nothing ran."""
        if self.no_command or self.preset.command is None:
            return None
        cmd = self.preset.command
        args = cmd.split(" ")
        if self.preset.verbose:
            print(f"Executing '{cmd}'")
        try:
            process = subprocess.Popen(args)
        except OSError as exc:
            raise OSError(f"Could not spawn process for command '{cmd}'") from exc
        return process.wait()