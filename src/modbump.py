"""ModBump - Go module major version upgrade tool.

Commands:
    get   Resolve a package spec, print the ``go get`` line and rewrite imports.
    list  Report direct dependencies that have newer versions.
    path  Change the major version of the current module's own path.

    Returns:
        int: Exit code
"""
import json
import logging
import os
import sys

from constants import ExitCodes, Constants
from common.errors import (
    ConfigurationError,
    InvalidPathError,
    InvalidVersionError,
    ModBumpError,
    ParseError,
    ProtocolError,
    TransportError,
)
from common.goenv import GoEnv
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from args import parse_args
from cli_config import load_config
from importpaths.rewrite import RewriteModuleOptions, rewrite_module, write_atomic
from registry.goproxy import ProxyClient
from registry.modfile import find_modfile, load_modfile, parse_modfile, set_module_path
from versioning import paths, semver
from versioning.resolver import ModuleResolver
from versioning.updates import UpdateScanner

logger = logging.getLogger(__name__)


def _print_rewrite(pos, newpath):
    print(f"{pos} {newpath}")


def build_resolver(env, cached):
    """Create a resolver over the proxies configured in ``env``."""
    client = ProxyClient(env.proxy_urls(), cached=cached)
    return ModuleResolver(client)


def run_get(args, cfg):
    """Resolve a spec, hand it to ``go get`` and rewrite imports."""
    env = GoEnv(overrides=cfg.env)
    pre = cfg.flag("pre", args.PRE, False)
    cached = cfg.flag("cached", args.CACHED, True)
    spec = build_resolver(env, cached).resolve(args.SPEC, pre)
    print("go get", str(spec))
    if not args.REWRITE:
        return ExitCodes.SUCCESS
    changed = rewrite_module(
        args.DIR,
        RewriteModuleOptions(
            prefix=spec.mod_prefix,
            new_version=spec.version,
            pkg_dir=spec.package_dir,
            on_rewrite=_print_rewrite,
        ),
    )
    logging.info("Rewrote imports in %d file(s).", changed)
    return ExitCodes.SUCCESS


def run_list(args, cfg):
    """Scan the direct requirements of the nearest go.mod for updates."""
    env = GoEnv(overrides=cfg.env)
    pre = cfg.flag("pre", args.PRE, False)
    cached = cfg.flag("cached", args.CACHED, True)
    modfile = load_modfile(find_modfile(args.DIR))
    scanner = UpdateScanner(
        build_resolver(env, cached),
        pre=pre,
        major=args.MAJOR,
        cached=cached,
        exclude=env.private_patterns(),
    )

    def _on_update(update):
        if args.JSON:
            print(json.dumps(update.to_dict()))
        else:
            print(f"{update.module.path}: {update.module.version} [latest {update.latest.version}]")

    def _on_error(update):
        if args.JSON:
            print(json.dumps(update.to_dict()))
        else:
            print(f"{update.module.path}: failed: {update.err}")

    failures = scanner.run(modfile.direct(), _on_update, _on_error)
    if failures:
        logging.warning("%d module(s) could not be checked.", failures)
    return ExitCodes.SUCCESS


def run_path(args, cfg):  # pylint: disable=unused-argument
    """Move the current module to another major version path."""
    name = find_modfile(args.DIR)
    try:
        with open(name, "r", encoding="utf-8", newline="") as fh:
            data = fh.read()
    except UnicodeDecodeError as exc:
        raise ParseError("invalid UTF-8", name) from exc
    current = parse_modfile(data, name).module
    if not current:
        raise ParseError("no module directive", name)

    modpath = args.MODPATH or current
    version = args.VERSION
    if not version:
        version, ok = paths.mod_major(modpath)
        if not ok or not version:
            version = "v1"
    if args.NEXT:
        version = semver.next_major(version)
    if not semver.is_valid(version):
        raise InvalidVersionError(f"invalid version: {version!r}")

    modprefix = paths.mod_prefix(modpath)
    newpath = paths.join_path(modprefix, version)
    print(f"module {newpath}")
    if not args.REWRITE:
        return ExitCodes.SUCCESS

    write_atomic(name, set_module_path(data, newpath, name))
    rewrite_module(
        args.DIR,
        RewriteModuleOptions(
            prefix=paths.mod_prefix(current),
            new_version=version,
            new_prefix=modprefix,
            on_rewrite=_print_rewrite,
        ),
    )
    return ExitCodes.SUCCESS


COMMANDS = {
    "get": run_get,
    "list": run_list,
    "path": run_path,
}


def exit_code_for(exc):
    """Map an error to the process exit code."""
    if isinstance(exc, (ConfigurationError, InvalidVersionError, InvalidPathError)):
        return ExitCodes.USAGE_ERROR
    if isinstance(exc, (TransportError, ProtocolError)):
        return ExitCodes.CONNECTION_ERROR
    if isinstance(exc, (ParseError, OSError)):
        return ExitCodes.FILE_ERROR
    return ExitCodes.RESOLUTION_ERROR


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    configure_logging(log_file=getattr(args, "LOG_FILE", None))

    if is_debug_enabled(logger):
        logger.debug(
            "CLI start",
            extra=extra_context(event="function_entry", component="cli", action=args.COMMAND),
        )

    try:
        cfg = load_config(getattr(args, "CONFIG", None))
        code = COMMANDS[args.COMMAND](args, cfg)
    except (ModBumpError, OSError) as exc:
        logging.error("%s", exc)
        code = exit_code_for(exc)

    if is_debug_enabled(logger):
        logger.debug(
            "CLI finished",
            extra=extra_context(event="function_exit", component="cli", action=args.COMMAND, outcome=code.name),
        )
    sys.exit(code.value)


if __name__ == "__main__":
    main()
