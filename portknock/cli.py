"""Command-line entry point: knock on a host or preset and manage presets."""

from __future__ import annotations

import argparse
import dataclasses
import getpass
import sys
from collections.abc import Sequence

from portknock.config import (
    Preset,
    decrypt_preset,
    delete_all_presets,
    delete_preset,
    encrypt_preset,
    list_presets,
    load_preset,
    preset_exists,
    store_preset,
)
from portknock.connection import Connection

PROG = "connection"
_IP_OPTIONS = ("Don't care", "IPv4", "IPv6")
_DEFAULT_DELAY = 100
_PRESET_OPTIONS = ("list", "new", "reconfigure", "delete", "delete_all")
_PRESET_FLAGS = {
    "list": "--list",
    "new": "--new",
    "reconfigure": "--reconfigure",
    "delete": "--delete",
    "delete_all": "--delete-all",
}
_NEW_PROTECTION_PROMPT = "Enter your password:"
_CONFIRMATION_PROMPT = "Confirmation: "


def _delay(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay '{text}'") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"invalid delay '{text}'")
    return value


class _Parser(argparse.ArgumentParser):
    """Argument parser that also enforces which options may be combined."""

    def parse_args(self, args=None, namespace=None):  # type: ignore[override]
        parsed = super().parse_args(args, namespace)
        self._check(parsed)
        return parsed

    def _check(self, args: argparse.Namespace) -> None:
        chosen = [
            name
            for name in _PRESET_OPTIONS
            if getattr(args, name) not in (None, False)
        ]
        others = (
            args.host is not None
            or bool(args.ports)
            or args.udp
            or args.delay != 0
            or args.ipv4
            or args.ipv6
            or args.verbose
            or args.command is not None
            or args.no_command
        )
        if chosen and (len(chosen) > 1 or others):
            self.error(
                f"the argument '{_PRESET_FLAGS[chosen[0]]}' cannot be used "
                "with one or more of the other specified arguments"
            )
        if not chosen and args.host is None:
            self.error("the following arguments are required: host | preset")


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser."""
    parser = _Parser(prog=PROG, description="A modern Port-Knocking Client")
    parser.add_argument(
        "host",
        nargs="?",
        metavar="host | preset",
        help="The host/IP to send the knock to OR the name of a preset",
    )
    parser.add_argument(
        "ports",
        nargs="*",
        metavar="port<:proto>",
        help="The Sequence of ports, separated by spaces. Example: 1234 5678:udp 9101:tcp",
    )
    parser.add_argument(
        "-u", "--udp", action="store_true",
        help="Make all ports hits use UDP (default is TCP)",
    )
    parser.add_argument(
        "-d", "--delay", type=_delay, default=0, metavar="t",
        help="Wait <t> milliseconds between Port hits",
    )
    family = parser.add_mutually_exclusive_group()
    family.add_argument("-4", "--ipv4", action="store_true", help="Force usage of IPv4")
    family.add_argument("-6", "--ipv6", action="store_true", help="Force usage of IPv6")
    parser.add_argument("-v", "--verbose", action="store_true", help="Be verbose")
    parser.add_argument("-c", "--command", metavar="cmd", help="Run a command after the knock")
    parser.add_argument(
        "-n", "--no-command", action="store_true",
        help="Don't run a command after the knock, even if configured in preset",
    )

    presets = parser.add_argument_group("Presets")
    presets.add_argument("-l", "--list", action="store_true", help="List all presets")
    presets.add_argument("--new", metavar="name", help="Run the Wizard to create a new preset")
    presets.add_argument("--reconfigure", metavar="name", help="Run the wizard to change a preset")
    presets.add_argument("--delete", metavar="name", help="Delete a preset")
    presets.add_argument("--delete-all", action="store_true", help="Delete all presets")
    return parser


def preset_from_args(args: argparse.Namespace) -> Preset:
    """Settings given directly on the command line."""
    return Preset(
        host=args.host,
        ports=list(args.ports),
        udp=args.udp,
        delay=args.delay,
        ipv4=args.ipv4,
        ipv6=args.ipv6,
        verbose=args.verbose,
        command=args.command,
    )


def merge_settings(loaded: Preset, args: argparse.Namespace) -> tuple[Preset, bool]:
    """Apply command-line switches on top of a loaded preset.

    Returns the merged preset and whether the follow-up command is suppressed.
    """
    no_command = bool(args.no_command)
    udp = loaded.udp or args.udp
    ipv4, ipv6 = loaded.ipv4, loaded.ipv6
    if args.ipv4:
        ipv4, ipv6 = True, False
    if args.ipv6:
        ipv4, ipv6 = False, True
    delay = max(args.delay, loaded.delay)
    command = loaded.command
    if args.command is not None:
        no_command = False
        command = args.command
    merged = dataclasses.replace(
        loaded, udp=udp, ipv4=ipv4, ipv6=ipv6, delay=delay, command=command
    )
    return merged, no_command


def _ask_text(message: str, *, required: bool = False, help_message: str | None = None) -> str:
    if help_message:
        print(f"[{help_message}]")
    while True:
        answer = input(f"{message} ")
        if answer or not required:
            return answer
        print("A response is required.")


def _ask_confirm(message: str, default: bool) -> bool:
    hint = "Y/n" if default else "y/N"
    while True:
        answer = input(f"{message} ({hint}) ").strip().lower()
        if not answer:
            return default
        if answer in ("y", "yes"):
            return True
        if answer in ("n", "no"):
            return False
        print("Type with 'y' or 'n'.")


def _ask_delay(message: str, default: int, help_message: str) -> int:
    print(f"[{help_message}]")
    while True:
        answer = input(f"{message} ({default}) ").strip()
        if not answer:
            return default
        if answer.isdigit():
            return int(answer)
        print("Invalid input, please enter a non-negative whole number.")


def _ask_select(message: str, options: Sequence[str]) -> str:
    print(message)
    for number, option in enumerate(options, start=1):
        print(f"  {number}) {option}")
    while True:
        answer = input("> ").strip()
        if not answer:
            return options[0]
        if answer.isdigit() and 1 <= int(answer) <= len(options):
            return options[int(answer) - 1]
        if answer in options:
            return answer
        print("Please pick one of the listed options.")


def _ask_hidden(message: str, *, confirm: bool) -> str:
    prompt = f"{message} "
    while True:
        entered = getpass.getpass(prompt)
        if not entered:
            print("A response is required.")
            continue
        if not confirm or getpass.getpass(_CONFIRMATION_PROMPT) == entered:
            return entered
        print("The answers don't match.")


def create_config(name: str) -> Preset:
    """Run the interactive wizard and store the result as preset ``name``."""
    host = _ask_text("Host:", required=True)
    udp = _ask_confirm("Use UDP as default instead of TCP?", False)
    ports_str = _ask_text(
        "Ports:",
        required=True,
        help_message=(
            "Space separated list of Ports to knock on, the protocol can optionally "
            "be specified with :tcp or :udp per Port, e.g. 1234 5678:udp 9101:tcp"
        ),
    )
    ports = ports_str.strip().split(" ")
    delay = _ask_delay(
        "Delay:", _DEFAULT_DELAY, "Delay between Port-hits in milliseconds"
    )
    ip_version = _ask_select("Select the IP Version", _IP_OPTIONS)
    verbose = _ask_confirm("Do you want connection to be verbose?", False)
    cmd = _ask_text("Command to run after knocking:", help_message="Leave Empty for none")
    encrypted = _ask_confirm("Do you want to password-protect the config?", True)

    preset = Preset(
        host=host,
        ports=ports,
        udp=udp,
        delay=delay,
        ipv4=ip_version == "IPv4",
        ipv6=ip_version == "IPv6",
        verbose=verbose,
        command=cmd or None,
    )

    if encrypted:
        entered = _ask_hidden(_NEW_PROTECTION_PROMPT, confirm=True)
        store_preset(name, Preset(encrypted_content=encrypt_preset(preset, entered)))
    else:
        store_preset(name, preset)
    return preset


def _run(args: argparse.Namespace) -> None:
    if args.new is not None:
        create_config(args.new)
        print(
            f"New config successfully created. Try it now with '{PROG} {args.new}'"
        )
        return

    if args.reconfigure is not None:
        name = args.reconfigure
        if not preset_exists(name):
            raise FileNotFoundError(f"Config '{name}' was not found")
        create_config(name)
        print(
            f"Config '{name}' successfully reconfigured. Try it now with '{PROG} {name}'"
        )
        return

    if args.delete is not None:
        delete_preset(args.delete)
        print(f"Config '{args.delete}' successfully deleted.")
        return

    if args.delete_all:
        if not _ask_confirm("Are you sure you want to DELETE all Presets?", False):
            return
        delete_all_presets()
        print("Successfully Deleted all Presets")
        return

    if args.list:
        for name in list_presets():
            print(f"- {name}")
        return

    preset = preset_from_args(args)
    no_command = bool(args.no_command)
    if preset_exists(args.host):
        if args.verbose:
            print(f"Preset '{args.host}' found, loading settings")
        loaded = load_preset(args.host)
        if loaded.encrypted_content is not None:
            prompt = f"Enter the password for config file '{args.host}'"
            entered = _ask_hidden(prompt, confirm=False)
            loaded = decrypt_preset(loaded.encrypted_content, entered)
        preset, no_command = merge_settings(loaded, args)

    connection = Connection(preset, no_command)
    connection.execute_knock()
    connection.exec_cmd()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line and return the exit status."""
    args = build_parser().parse_args(argv)
    try:
        _run(args)
    except (KeyboardInterrupt, EOFError):
        print("Error: Operation was interrupted by the user", file=sys.stderr)
        return 1
    except (OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())