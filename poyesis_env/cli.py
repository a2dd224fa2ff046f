"""
Poyesis Env - CLI Interface

Main CLI entry point for the poyesis-env command.
Maps the init, create, push and pull verbs onto the sync manager.
"""

import argparse
import sys
from typing import Optional

from .managers.app_manager import AppManager
from .managers.config import (
  DEFAULT_CONFIG_PATH,
  DEFAULT_CREATE_PATH,
  DEFAULT_LIST_PATH,
  DEFAULT_PUSH_PATH,
  DEFAULT_READ_PATH,
  DEFAULT_SINGLE_PULL_PATH,
  EnvSyncConfig,
  EnvSyncConfigError,
)
from .managers.sync_manager import SyncReport

EXIT_ERROR = 1
EXIT_USAGE = 2

EPILOG = """
envs.json example:
  {
    "project": "my-project",
    "envs": [
      { "name": ".env", "secret": "" },
      { "name": ".production.env", "secret": "" }
    ]
  }

Examples:
  poyesis-env init my-project backend
  poyesis-env create
  poyesis-env push
  poyesis-env pull
  poyesis-env pull c6967... --path .production.env
"""


def _summarize(app: AppManager, command: str, report: SyncReport) -> None:
  logger = app.get_logger("cli", f"cli.{command}")
  done = len(report.created) + len(report.pushed) + len(report.pulled) + len(report.written)
  logger.info(f"{command}: {done} done, {len(report.skipped)} skipped")


def handle_init(args: argparse.Namespace, app: AppManager) -> None:
  """Seed local env files and envs.json from a remote project/category."""
  logger = app.get_logger("cli", "cli.init")

  try:
    report = app.sync_manager.init(args.project, args.category)
    _summarize(app, "init", report)
  except Exception as e:
    logger.error(f"Error during init: {e}", exc_info=True)
    sys.exit(EXIT_ERROR)


def handle_create(args: argparse.Namespace, app: AppManager) -> None:
  """Create secrets for local env files that have none yet."""
  logger = app.get_logger("cli", "cli.create")

  try:
    report = app.sync_manager.create()
    _summarize(app, "create", report)
  except Exception as e:
    logger.error(f"Error during create: {e}", exc_info=True)
    sys.exit(EXIT_ERROR)


def handle_push(args: argparse.Namespace, app: AppManager) -> None:
  """Push local file content for entries with a secret."""
  logger = app.get_logger("cli", "cli.push")

  try:
    report = app.sync_manager.push()
    _summarize(app, "push", report)
  except Exception as e:
    logger.error(f"Error during push: {e}", exc_info=True)
    sys.exit(EXIT_ERROR)


def handle_pull(args: argparse.Namespace, app: AppManager) -> None:
  """Pull every mapped secret, or a single secret when one is given."""
  logger = app.get_logger("cli", "cli.pull")

  try:
    secret = (args.secret or "").strip()
    if secret:
      report = app.sync_manager.pull_single(secret, app.config.single_pull_path, app.config.map_name)
    else:
      report = app.sync_manager.pull()
    _summarize(app, "pull", report)
  except Exception as e:
    logger.error(f"Error during pull: {e}", exc_info=True)
    sys.exit(EXIT_ERROR)


def build_parser() -> argparse.ArgumentParser:
  """Build the argument parser with options accepted after every command."""
  common = argparse.ArgumentParser(add_help=False)
  common.add_argument("-c", "--config", default=DEFAULT_CONFIG_PATH, help="Mapping file (default: envs.json)")
  common.add_argument(
    "-u",
    "--base-url",
    dest="base_url",
    help="API base URL (default: $POYESIS_ENV_BASE_URL or https://api.poyesis.fr)",
  )
  common.add_argument("--list-path", dest="list_path", default=DEFAULT_LIST_PATH, help="List endpoint template")
  common.add_argument("--read-path", dest="read_path", default=DEFAULT_READ_PATH, help="Read endpoint template")
  common.add_argument(
    "--create-path", dest="create_path", default=DEFAULT_CREATE_PATH, help="Create endpoint template"
  )
  common.add_argument("--push-path", dest="push_path", default=DEFAULT_PUSH_PATH, help="Push endpoint template")
  common.add_argument("--overwrite", action="store_true", help="init: replace local files that already exist")
  common.add_argument(
    "-p",
    "--path",
    default=DEFAULT_SINGLE_PULL_PATH,
    help="pull <secret>: output file (default: .env)",
  )
  common.add_argument("--name", help="pull <secret>: mapping entry name (default: the output path)")
  common.add_argument("-q", "--quiet", action="store_true", help="Suppress informational output")
  common.add_argument("--debug", action="store_true", help="Enable debug logging")

  parser = argparse.ArgumentParser(
    prog="poyesis-env",
    description="Poyesis Env - synchronize local env files with remote secrets",
    epilog=EPILOG,
    formatter_class=argparse.RawDescriptionHelpFormatter,
  )

  subparsers = parser.add_subparsers(dest="command", help="Available commands")

  init_parser = subparsers.add_parser("init", parents=[common], help="Fetch a project's envs and write envs.json")
  init_parser.add_argument("project", help="Remote project")
  init_parser.add_argument("category", help="Remote category")
  init_parser.set_defaults(func=handle_init)

  create_parser = subparsers.add_parser(
    "create", parents=[common], help="Create secrets for local env files without one"
  )
  create_parser.set_defaults(func=handle_create)

  push_parser = subparsers.add_parser("push", parents=[common], help="Push local content for entries with a secret")
  push_parser.set_defaults(func=handle_push)

  pull_parser = subparsers.add_parser(
    "pull",
    parents=[common],
    help="Pull entries with a secret, or pull a single secret into --path and record it",
  )
  pull_parser.add_argument("secret", nargs="?", help="Single secret to pull")
  pull_parser.set_defaults(func=handle_pull)

  return parser


def main(argv: Optional[list[str]] = None) -> None:
  """Main CLI entry point."""

  if sys.version_info < (3, 9):  # noqa: UP036
    print(
      f"Poyesis Env requires Python 3.9+, found Python {sys.version_info.major}.{sys.version_info.minor}",
      file=sys.stderr,
    )
    sys.exit(EXIT_ERROR)

  parser = build_parser()
  args = parser.parse_args(argv)

  if not hasattr(args, "func"):
    parser.print_help()
    sys.exit(EXIT_USAGE)

  try:
    config = EnvSyncConfig.from_args(args)
  except EnvSyncConfigError as e:
    parser.error(str(e))

  app = AppManager(config)
  args.func(args, app)


if __name__ == "__main__":
  main()
