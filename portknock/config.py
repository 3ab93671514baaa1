"""Preset storage: TOML files in the user's config directory, optionally encrypted."""

from __future__ import annotations

import hashlib
import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import platformdirs
import tomli_w
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

APP_NAME = "connection"
_SUFFIX = ".toml"
_REQUIRED_FIELDS = ("ports", "udp", "delay", "ipv4", "ipv6", "verbose")
_BOOL_FIELDS = ("udp", "ipv4", "ipv6", "verbose")


@dataclass
class Preset:
    """The settings of one knock: target, port sequence and follow-up command."""

    host: str | None = None
    ports: list[str] = field(default_factory=list)
    udp: bool = False
    delay: int = 0
    ipv4: bool = False
    ipv6: bool = False
    verbose: bool = False
    command: str | None = None
    encrypted_content: bytes | None = None

    def _fields(self) -> dict[str, Any]:
        return {
            "host": self.host,
            "ports": list(self.ports),
            "udp": self.udp,
            "delay": self.delay,
            "ipv4": self.ipv4,
            "ipv6": self.ipv6,
            "verbose": self.verbose,
            "command": self.command,
            "encrypted_content": (
                list(self.encrypted_content)
                if self.encrypted_content is not None
                else None
            ),
        }

    def to_dict(self) -> dict[str, Any]:
        """Return the stored fields, leaving out those that are unset."""
        return {key: value for key, value in self._fields().items() if value is not None}


def preset_from_dict(data: dict[str, Any]) -> Preset:
    """Build a preset from stored fields, checking that they are complete and well typed."""
    if not isinstance(data, dict):
        raise ValueError("Preset data must be a mapping")
    for key in _REQUIRED_FIELDS:
        if key not in data:
            raise ValueError(f"Missing field '{key}'")

    host = data.get("host")
    if host is not None and not isinstance(host, str):
        raise ValueError("Field 'host' must be a string")

    ports = data["ports"]
    if not isinstance(ports, list) or not all(isinstance(p, str) for p in ports):
        raise ValueError("Field 'ports' must be a list of strings")

    for key in _BOOL_FIELDS:
        if not isinstance(data[key], bool):
            raise ValueError(f"Field '{key}' must be a boolean")

    delay = data["delay"]
    if isinstance(delay, bool) or not isinstance(delay, int) or delay < 0:
        raise ValueError("Field 'delay' must be a non-negative integer")

    command = data.get("command")
    if command is not None and not isinstance(command, str):
        raise ValueError("Field 'command' must be a string")

    raw = data.get("encrypted_content")
    encrypted: bytes | None = None
    if raw is not None:
        if not isinstance(raw, list) or not all(
            isinstance(b, int) and not isinstance(b, bool) and 0 <= b <= 255 for b in raw
        ):
            raise ValueError("Field 'encrypted_content' must be a list of bytes")
        encrypted = bytes(raw)

    return Preset(
        host=host,
        ports=list(ports),
        udp=data["udp"],
        delay=delay,
        ipv4=data["ipv4"],
        ipv6=data["ipv6"],
        verbose=data["verbose"],
        command=command,
        encrypted_content=encrypted,
    )


def config_dir() -> Path:
    """Directory that holds the preset files."""
    return Path(platformdirs.user_config_path(APP_NAME, appauthor=False))


def preset_path(name: str) -> Path:
    """Path of the file for preset ``name``."""
    return config_dir() / f"{name}{_SUFFIX}"


def preset_exists(name: str) -> bool:
    return preset_path(name).exists()


def load_preset(name: str) -> Preset:
    """Read preset ``name`` from disk."""
    path = preset_path(name)
    if not path.exists():
        raise FileNotFoundError(f"Config '{name}' was not found")
    try:
        with path.open("rb") as handle:
            data = tomllib.load(handle)
        return preset_from_dict(data)
    except (tomllib.TOMLDecodeError, ValueError) as exc:
        raise ValueError(f"Could not load config file for '{name}'") from exc


def store_preset(name: str, preset: Preset) -> Path:
    """Write preset ``name`` to disk and return its path."""
    path = preset_path(name)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(tomli_w.dumps(preset.to_dict()), encoding="utf-8")
    return path


def delete_preset(name: str) -> None:
    path = preset_path(name)
    if not path.exists():
        raise FileNotFoundError(f"Config '{name}' was not found")
    path.unlink()


def delete_all_presets() -> None:
    """Remove every file in the preset directory."""
    directory = config_dir()
    if not directory.exists():
        raise FileNotFoundError("No Presets found")
    for entry in directory.iterdir():
        entry.unlink()


def list_presets() -> list[str]:
    """Names of all stored presets, sorted."""
    directory = config_dir()
    if not directory.exists():
        raise FileNotFoundError("No Presets found")
    return sorted(entry.name.replace(_SUFFIX, "") for entry in directory.iterdir())


def _cipher(password: str) -> Cipher:
    key = hashlib.sha256(password.encode("utf-8")).digest()
    return Cipher(algorithms.AES(key), modes.CBC(bytes(16)))


def encrypt_preset(preset: Preset, password: str) -> bytes:
    """Serialize ``preset`` as JSON and encrypt it with AES-256-CBC keyed by ``password``."""
    plaintext = json.dumps(preset._fields(), separators=(",", ":")).encode("utf-8")
    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = _cipher(password).encryptor()
    return encryptor.update(padded) + encryptor.finalize()


def decrypt_preset(data: bytes, password: str) -> Preset:
    """Reverse :func:`encrypt_preset`."""
    try:
        decryptor = _cipher(password).decryptor()
        padded = decryptor.update(bytes(data)) + decryptor.finalize()
        unpadder = padding.PKCS7(128).unpadder()
        plaintext = unpadder.update(padded) + unpadder.finalize()
        return preset_from_dict(json.loads(plaintext.decode("utf-8")))
    except ValueError as exc:
        raise ValueError("Could not decrypt config. Wrong Password?") from exc