"""Command-line entry point.

Usage:
    rigup [-v] [--config PATH] run [--yes]
    rigup [-v] [--config PATH] check
    rigup [-v] [--config PATH] init
    rigup [-v] detect
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rigup import __version__
from rigup.adapters.git import GitConfig
from rigup.adapters.prompts import ConsolePrompter, Prompter
from rigup.adapters.ssh import read_public_key
from rigup.core.batch import EXIT_FAILURES, EXIT_OK, exit_code, format_results, format_summary, run_all, summarize
from rigup.core.reconciler import check, reconcile
from rigup.core.spec import Action, ReconcileResult
from rigup.exceptions import ConfigurationError, RigupError, UserAbortedError
from rigup.setup.config import (
    BootstrapConfig,
    GitSettings,
    default_config_path,
    load_config,
    write_config,
)
from rigup.setup.env_detector import detect_tools
from rigup.setup.plan import PlanContext, build_plan, ssh_key_path
from rigup.setup.wizard import format_config_review, format_plan_review, run_wizard, validate_wizard_config

logger = logging.getLogger(__name__)

LOG_FORMAT = "[rigup] %(levelname)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="rigup", description="Idempotent workstation bootstrap")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument("--config", type=Path, default=None, help="Bootstrap config file (default: RIGUP_CONFIG)")

    subparsers = parser.add_subparsers(dest="command", required=True)

    run_parser = subparsers.add_parser("run", help="Reconcile the machine with the config")
    run_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("check", help="Report drift without changing anything")
    subparsers.add_parser("init", help="Create the config with an interactive wizard")
    subparsers.add_parser("detect", help="List detected tools and versions")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        stream=sys.stderr,
    )


def print_results(results: Sequence[ReconcileResult]) -> None:
    print(format_results(results))
    print()
    print(format_summary(summarize(results)))


def print_new_public_key(config: BootstrapConfig, results: Sequence[ReconcileResult]) -> None:
    """Show a freshly generated public key so it can be added to GitHub."""
    key_path = ssh_key_path(config)
    applied = any(r.name == f"ssh:key:{key_path.name}" and r.action is Action.APPLIED for r in results)
    if not applied:
        return
    public_key = read_public_key(key_path)
    if public_key:
        print()
        print("New SSH public key (add it at https://github.com/settings/keys):")
        print(public_key)


def cmd_run(config_path: Optional[Path], assume_yes: bool, prompter: Prompter) -> int:
    config = load_config(config_path)
    context = PlanContext.detect(prompter=None if assume_yes else prompter)
    specs = build_plan(config, context)

    if not assume_yes:
        print(format_plan_review(specs))
        print()
        if not prompter.confirm(f"Apply {len(specs)} specs?", default=True):
            print("Aborted. Nothing was changed.")
            return EXIT_OK

    results = run_all(specs, reconcile)
    print_results(results)
    print_new_public_key(config, results)
    return exit_code(results)


def cmd_check(config_path: Optional[Path]) -> int:
    config = load_config(config_path)
    specs = build_plan(config, PlanContext.detect())
    results = run_all(specs, check)
    print_results(results)
    return exit_code(results)


def _existing_config(config_path: Path) -> BootstrapConfig:
    """Defaults for the wizard: the current file, else the global git identity."""
    if config_path.exists():
        try:
            return load_config(config_path)
        except ConfigurationError as e:
            logger.warning(f"Ignoring unreadable config: {e}")

    git = GitConfig()
    identity = {}
    for key in ("user.name", "user.email"):
        try:
            identity[key] = git.get(key)
        except RigupError as e:
            logger.debug(f"No git {key}: {e}")
    return BootstrapConfig(git=GitSettings(identity.get("user.name", ""), identity.get("user.email", "")))


def cmd_init(config_path: Optional[Path], prompter: Prompter) -> int:
    config_path = config_path or default_config_path()
    detection = detect_tools()
    config = run_wizard(prompter, detection, _existing_config(config_path))

    errors = validate_wizard_config(config)
    if errors:
        for error in errors:
            print(f"✗ {error}")
        return EXIT_FAILURES

    print()
    print(format_config_review(config, config_path))
    print()
    if not prompter.confirm("Write this configuration?", default=True):
        print("Aborted. Config not written.")
        return EXIT_OK

    result = write_config(config, config_path)
    if not result.success:
        print(f"✗ Failed to write config: {result.error}")
        for error in result.validation_errors:
            print(f"  - {error}")
        return EXIT_FAILURES

    print(f"✓ Config written to {result.config_path}")
    if result.backup_path:
        print(f"  Backup: {result.backup_path}")
    print("Next: rigup run")
    return EXIT_OK


def cmd_detect() -> int:
    result = detect_tools()
    for tool in result.tools.values():
        if tool.found:
            print(f"✓ {tool.name:8} {tool.version or 'unknown version'} ({tool.path})")
        else:
            print(f"✗ {tool.name:8} not found")
    print()
    print(f"{result.total_found}/{result.total_checked} tools found")
    return EXIT_OK


def main(argv: Optional[Sequence[str]] = None, prompter: Optional[Prompter] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)
    prompter = prompter or ConsolePrompter()

    try:
        if args.command == "run":
            return cmd_run(args.config, args.yes, prompter)
        if args.command == "check":
            return cmd_check(args.config)
        if args.command == "init":
            return cmd_init(args.config, prompter)
        return cmd_detect()
    except ConfigurationError as e:
        print(f"✗ {e}", file=sys.stderr)
        return EXIT_FAILURES
    except UserAbortedError:
        print("Aborted.", file=sys.stderr)
        return EXIT_FAILURES


if __name__ == "__main__":
    sys.exit(main())
