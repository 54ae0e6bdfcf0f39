"""cronopipe -- copy standard input into log files named by a strftime template."""

from __future__ import annotations

import sys
from argparse import ArgumentParser, Namespace
from enum import IntEnum
from typing import Any, Dict, List, NoReturn, Sequence

from . import api
from .core.errors import ConfigurationError, InputReadError, OutputOpenError, OutputWriteError
from .version import __version__


class ExitStatus(IntEnum):
    OK = 0
    CONFIG_ERROR = 1
    OPEN_ERROR = 2
    READ_ERROR = 4
    WRITE_ERROR = 5


EPILOG = """\
example (Apache httpd.conf):

  TransferLog "|cronopipe /www/logs/%Y/%m/%d/access.log"
"""


class CronopipeArgumentParser(ArgumentParser):
    """Report usage errors with the configuration error status."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(ExitStatus.CONFIG_ERROR, f"{self.prog}: error: {message}\n")


def build_parser() -> ArgumentParser:
    """Build the CLI argument parser."""
    parser = CronopipeArgumentParser(
        prog="cronopipe",
        description="Copy standard input into log files named by a strftime template, "
        "starting a new file whenever the period implied by the template ends.",
        epilog=EPILOG,
    )
    parser.add_argument("template", help="Log file name template, e.g. /logs/%%Y/%%m/%%d/access.log")
    parser.add_argument(
        "-H",
        "--hardlink",
        metavar="NAME",
        help="Maintain a hard link from NAME to the current log",
    )
    parser.add_argument(
        "-S",
        "--symlink",
        "-l",
        "--link",
        dest="symlink",
        metavar="NAME",
        help="Maintain a symbolic link from NAME to the current log",
    )
    parser.add_argument(
        "-P",
        "--prev-symlink",
        metavar="NAME",
        help="Maintain a link from NAME to the previous log",
    )
    parser.add_argument(
        "-o",
        "--once-only",
        action="store_true",
        default=None,
        help="Create a single log file from the template (no rotation)",
    )
    parser.add_argument(
        "-p",
        "--period",
        metavar="PERIOD",
        help="Rotation period, e.g. '15 minutes' or '2 weeks' (default: inferred from the template)",
    )
    parser.add_argument(
        "-d",
        "--delay",
        metavar="DELAY",
        help="Delay the switch to a new file by DELAY, e.g. '5 minutes'",
    )
    parser.add_argument(
        "-s",
        "--start-time",
        metavar="TIME",
        help="Pretend the current time is TIME",
    )
    parser.add_argument(
        "-a",
        "--american",
        dest="american_dates",
        action="store_true",
        default=None,
        help="Parse the start time with American date formats",
    )
    parser.add_argument(
        "-e",
        "--european",
        dest="american_dates",
        action="store_false",
        help="Parse the start time with European date formats (default)",
    )
    parser.add_argument(
        "-z",
        "--time-zone",
        metavar="TZ",
        help="Use time zone TZ instead of local time",
    )
    parser.add_argument(
        "-x",
        "--debug",
        metavar="FILE",
        help="Write debug messages to FILE ('-' for standard error)",
    )
    parser.add_argument(
        "--trace",
        action="store_true",
        default=None,
        help="Also write a debug message for every chunk copied",
    )
    parser.add_argument(
        "--preview",
        type=int,
        metavar="N",
        help="Print the next N periods and their file names, then exit",
    )
    parser.add_argument(
        "--create-dirs",
        action="store_true",
        help="With --preview, also create the directories of the listed files",
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s version {__version__}")
    return parser


def build_overrides(args: Namespace) -> Dict[str, Any]:
    """Translate parsed options into configuration overrides.

    Options that were not given are left out so that configuration files and
    environment variables still apply.
    """
    rotation: Dict[str, Any] = {"template": args.template}
    for key in ("period", "delay", "start_time", "time_zone", "once_only", "american_dates"):
        value = getattr(args, key)
        if value is not None:
            rotation[key] = value

    links: Dict[str, Any] = {}
    if args.hardlink:
        links.update(current=args.hardlink, kind="hardlink")
    if args.symlink:
        links.update(current=args.symlink, kind="symlink")
    if args.prev_symlink:
        links["previous"] = args.prev_symlink

    logging_overrides: Dict[str, Any] = {}
    if args.debug:
        logging_overrides["debug_file"] = args.debug
    if args.trace:
        logging_overrides["enable_trace"] = True

    overrides: Dict[str, Any] = {"rotation": rotation}
    if links:
        overrides["links"] = links
    if logging_overrides:
        overrides["logging"] = logging_overrides
    return overrides


def _print_preview(overrides: Dict[str, Any], count: int, create_dirs: bool) -> None:
    previews = api.preview(overrides, count, create_dirs=create_dirs)
    for index, period in enumerate(previews, start=1):
        print(f"Period {index} starts at {period.label} ({period.start}):  \"{period.path}\"")


def _fail(message: str) -> None:
    print(f"cronopipe: {message}", file=sys.stderr)


def main(argv: Sequence[str] | None = None) -> int:
    """Run cronopipe and return the process exit status."""
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    overrides = build_overrides(args)

    try:
        if args.preview is not None:
            _print_preview(overrides, args.preview, args.create_dirs)
        else:
            api.run(overrides)
    except ConfigurationError as exc:
        _fail(str(exc))
        return ExitStatus.CONFIG_ERROR
    except OutputOpenError as exc:
        _fail(str(exc))
        return ExitStatus.OPEN_ERROR
    except InputReadError as exc:
        _fail(str(exc))
        return ExitStatus.READ_ERROR
    except OutputWriteError as exc:
        _fail(str(exc))
        return ExitStatus.WRITE_ERROR
    return ExitStatus.OK


__all__: List[str] = ["ExitStatus", "CronopipeArgumentParser", "build_parser", "build_overrides", "main"]
