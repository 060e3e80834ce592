"""Command line entry point: parse the simulator address and poll it forever."""

from __future__ import annotations

import re
import sys
import time
from argparse import Namespace
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from .monitor import LightMonitor

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8080
POLL_INTERVAL_SECONDS = 2

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_INT_PATTERN = re.compile(r"\s*([+-]?)(0[xX][0-9a-fA-F]+|0[0-7]*|[1-9][0-9]*)")
_HELP_HINT = "For more help use --help or -h.\n"


def _single(arguments: list[str]) -> str:
    if len(arguments) != 1:
        raise ValueError(f"expected exactly one argument, got {len(arguments)}")
    return arguments[0]


def _to_text(arguments: list[str]) -> str:
    return _single(arguments)


def _to_int(arguments: list[str]) -> int:
    """Read a leading integer in decimal, octal (0...) or hex (0x...); trailing text is ignored."""
    text = _single(arguments)
    match = _INT_PATTERN.match(text)
    if match is None:
        raise ValueError(f"no integer in {text!r}")
    sign, digits = match.groups()
    if digits[:2] in ("0x", "0X"):
        value = int(digits[2:], 16)
    elif digits.startswith("0"):
        value = int(digits, 8)
    else:
        value = int(digits, 10)
    if sign == "-":
        value = -value
    if not _INT_MIN <= value <= _INT_MAX:
        raise ValueError(f"{text!r} is out of range")
    return value


@dataclass(frozen=True)
class _Option:
    name: str
    alternative: str
    description: str
    default: Any = None
    convert: Callable[[list[str]], Any] | None = None
    dominant: bool = False

    @property
    def flag(self) -> str:
        return f"-{self.name}" if self.name else ""

    @property
    def long_flag(self) -> str:
        return f"--{self.alternative}" if self.alternative else ""

    @property
    def shown_default(self) -> str:
        return "" if self.default is None else str(self.default)

    def matches(self, token: str) -> bool:
        return token in (self.flag, self.long_flag)


class _Parser:
    """A small option parser: each option takes one value, ``-h``/``--help`` prints usage."""

    def __init__(self) -> None:
        self._help = _Option("h", "help", "", dominant=True)
        self._options: list[_Option] = [self._help]

    def add(self, option: _Option) -> None:
        self._options.append(option)

    def usage(self) -> str:
        parts = ["Available parameters:\n\n"]
        for option in self._options:
            parts.append(f"  {option.flag}\t{option.long_flag}")
            parts.append(f"\n   {option.description}")
            parts.append(
                "\n   This parameter is optional. "
                f"The default value is '{option.shown_default}'."
            )
            parts.append("\n\n")
        return "".join(parts)

    def _find(self, token: str) -> _Option | None:
        return next((option for option in self._options if option.matches(token)), None)

    @staticmethod
    def _fail(message: str) -> None:
        sys.stderr.write(message)
        sys.stderr.flush()
        raise SystemExit(1)

    def _invalid(self, option: _Option) -> None:
        self._fail(
            f"The parameter {option.name} has invalid arguments.\n"
            f"{option.description}\n{_HELP_HINT}"
        )

    def parse(self, argv: Sequence[str]) -> Namespace:
        collected: dict[str, list[str]] = {}
        current: _Option | None = None
        for token in argv:
            option = self._find(token) if token.startswith("-") else None
            if option is not None:
                current = option
                collected.setdefault(option.name, [])
            elif current is None:
                self._fail(
                    "No default parameter has been specified.\n"
                    "The given argument must be used with a parameter.\n"
                    f"{_HELP_HINT}"
                )
            else:
                collected.setdefault(current.name, []).append(token)
                current = None

        for option in self._options:
            if option.dominant and option.name in collected and option is self._help:
                sys.stdout.write(self.usage())
                sys.stdout.flush()
                raise SystemExit(0)

        values: dict[str, Any] = {}
        for option in self._options:
            if option.dominant:
                continue
            if option.name in collected and option.convert is not None:
                try:
                    values[option.name] = option.convert(collected[option.name])
                except ValueError:
                    self._invalid(option)
            else:
                values[option.name] = option.default
        return Namespace(**values)


def build_parser() -> _Parser:
    """Return the parser for the host and port options."""
    parser = _Parser()
    parser.add(_Option("host", "h", "Specify host address", DEFAULT_HOST, _to_text))
    parser.add(_Option("port", "p", "Specify port number", DEFAULT_PORT, _to_int))
    return parser


def parse_args(argv: Sequence[str] | None = None) -> Namespace:
    """Parse ``argv``; print usage or an error and raise SystemExit where needed."""
    if argv is None:
        argv = sys.argv[1:]
    return build_parser().parse(list(argv))


def main(argv: Sequence[str] | None = None) -> int:
    """Poll the configured simulator every two seconds until interrupted."""
    args = parse_args(argv)
    with LightMonitor(args.host, args.port) as monitor:
        print(f"Polling {args.host}:{args.port}", flush=True)
        try:
            while True:
                monitor.poll()
                time.sleep(POLL_INTERVAL_SECONDS)
        except KeyboardInterrupt:
            pass
    return 0


if __name__ == "__main__":
    sys.exit(main())