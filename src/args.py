"""Argument parsing functionality for ModBump."""

import argparse


def _add_common(parser, resolve=True):
    parser.add_argument("--dir",
                        dest="DIR",
                        help="Working directory (default: current directory)",
                        action="store",
                        type=str,
                        default=".")
    if not resolve:
        return
    parser.add_argument("--pre",
                        dest="PRE",
                        help="Allow non-v0 prerelease versions",
                        action="store_const",
                        const=True,
                        default=None)
    parser.add_argument("--cached",
                        dest="CACHED",
                        help="Only fetch cached content from the module proxy (default)",
                        action="store_const",
                        const=True,
                        default=None)
    parser.add_argument("--no-cached",
                        dest="CACHED",
                        help="Let the module proxy fetch content it has not cached yet",
                        action="store_const",
                        const=False)


def build_parser():
    """Build the top-level parser with its subcommands."""
    parser = argparse.ArgumentParser(
        prog="modbump",
        description="ModBump - Go module major version upgrade tool",
        add_help=True,
    )
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='INFO')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)

    sub = parser.add_subparsers(dest="COMMAND", metavar="command")
    sub.required = True

    get = sub.add_parser("get", help="Upgrade a dependency and rewrite its imports")
    _add_common(get)
    get.add_argument("--no-rewrite",
                     dest="REWRITE",
                     help="Do not rewrite import paths",
                     action="store_false")
    get.add_argument("SPEC",
                     help="Package path with optional @version, @latest or @master",
                     type=str)

    lst = sub.add_parser("list", help="List direct dependencies with newer versions")
    _add_common(lst)
    lst.add_argument("--major",
                     dest="MAJOR",
                     help="Only show newer major versions",
                     action="store_true")
    lst.add_argument("--json",
                     dest="JSON",
                     help="Print results as JSON lines",
                     action="store_true")

    path = sub.add_parser("path", help="Change the major version of the current module path")
    _add_common(path, resolve=False)
    path.add_argument("--next",
                      dest="NEXT",
                      help="Increment the module path version",
                      action="store_true")
    path.add_argument("--version",
                      dest="VERSION",
                      help="Set the module path version",
                      action="store",
                      type=str,
                      default="")
    path.add_argument("--no-rewrite",
                      dest="REWRITE",
                      help="Only print the new module path",
                      action="store_false")
    path.add_argument("MODPATH",
                      help="New module path (default: the current one)",
                      nargs="?",
                      type=str,
                      default="")

    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
