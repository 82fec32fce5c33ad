"""Command-line entry point.

Usage::

    rails-react-graphql generate my-app --yes
    rails-react-graphql generate my-app --rails-version 7.1.0 --react-version 18.2.0 --database postgresql
    rails-react-graphql rollback --project-path ./my-app --backup backup-2026-10-19T11-48-03-512904Z
    rails-react-graphql rollback --list-backups

Exit status: 0 on success or when the user cancelled, 1 on any failure.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.prompt import Confirm

from . import __version__
from .config import GenerateOptions, ProjectConfig, Settings, validate_flags
from .errors import RollbackFailed, ValidationFailed
from .prompts import GenerationCancelled, resolve_project_config
from .recovery import BackupStore, RecoveryCoordinator, RollbackEngine, RollbackRecord
from .recovery.coordinator import EXIT_FAILURE, EXIT_OK
from .scaffolder import ProjectGenerator
from .utils import (
    console,
    print_error,
    print_header,
    print_info,
    print_list,
    print_subheader,
    print_success,
    print_summary_table,
    print_warning,
    set_debug,
)

# ---------------------------------------------------------------------------
# generate
# ---------------------------------------------------------------------------


async def generate_project(config: ProjectConfig, coordinator: RecoveryCoordinator) -> Path:
    """Run the generator for *config*; exits through the coordinator on failure."""
    generator = ProjectGenerator(config, coordinator)
    return await generator.generate()


def _options_from_args(args: argparse.Namespace) -> GenerateOptions:
    return GenerateOptions(
        yes=args.yes,
        rails_version=args.rails_version,
        react_version=args.react_version,
        database=args.database,
        typescript=args.typescript,
        testing=args.testing,
        linting=args.linting,
        authentication=args.authentication,
        api_docs=args.api_docs,
        git=args.git,
        docker=args.docker,
        build_tool=args.build_tool,
        package_manager=args.package_manager,
    )


def _print_next_steps(config: ProjectConfig) -> None:
    print_success("Your Rails React GraphQL project is ready!")
    print_subheader("Next Steps")
    print_list(
        [
            f"cd {config.project_name}",
            f"{config.package_manager} install",
            f"{config.package_manager} run setup",
            f"{config.package_manager} run dev",
        ]
    )
    print_subheader("Access Points")
    print_summary_table(
        {
            "Rails API": "http://localhost:3000",
            "React App": "http://localhost:5173",
            "GraphQL Playground": "http://localhost:3000/graphiql",
        },
        title="Access Points",
    )


def run_generate(args: argparse.Namespace, coordinator: RecoveryCoordinator) -> int:
    print_header("Rails React GraphQL Project Generator")
    options = _options_from_args(args)

    try:
        validate_flags(options)
        config = resolve_project_config(args.project_name, options, coordinator.settings.base_dir)
    except ValidationFailed as exc:
        coordinator.report_error(exc, "command-line options")
        print_info("Use --help for more information about available options.")
        return EXIT_FAILURE
    except GenerationCancelled as exc:
        print_info(str(exc))
        return EXIT_OK

    asyncio.run(generate_project(config, coordinator))
    _print_next_steps(config)
    return EXIT_OK


# ---------------------------------------------------------------------------
# rollback
# ---------------------------------------------------------------------------


def run_rollback(args: argparse.Namespace, coordinator: RecoveryCoordinator) -> int:
    """Roll back the run this process still holds, or a user-supplied path."""
    backups = BackupStore(coordinator.settings.backup_root)

    if args.list_backups:
        snapshots = backups.list_snapshots()
        if not snapshots:
            print_info(f"No backups found in {backups.backup_root}")
            return EXIT_OK
        print_summary_table(
            {s.name: s.created_at.strftime("%Y-%m-%d %H:%M:%S UTC") for s in snapshots},
            title="Backups",
        )
        return EXIT_OK

    try:
        if coordinator.current is not None:
            coordinator.rollback_current()
            return EXIT_OK

        if not args.project_path:
            print_warning("No rollback information available")
            print_info("Pass --project-path to roll back a previous generation.")
            return EXIT_FAILURE

        target = Path(args.project_path).resolve()
        if args.backup:
            backups.attach(args.backup, target)

        if not args.yes:
            question = f"Delete {target}"
            if args.backup:
                question += f" and restore {args.backup}"
            if not Confirm.ask(question + "?", default=False, console=console):
                print_info("Rollback cancelled.")
                return EXIT_OK

        RollbackEngine(RollbackRecord(target_path=target), backups).run()
    except FileNotFoundError as exc:
        print_error(str(exc))
        return EXIT_FAILURE
    except RollbackFailed as exc:
        print_error(f"Failed to rollback: {exc}")
        if exc.report.kept_backup is not None:
            print_info(f"The backup is kept at: {exc.report.kept_backup}")
        return EXIT_FAILURE
    return EXIT_OK


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rails-react-graphql",
        description="CLI tool to generate boilerplate Rails React GraphQL projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  rails-react-graphql generate\n"
            "  rails-react-graphql generate my-app --yes\n"
            "  rails-react-graphql generate my-app --rails-version 7.1.0 "
            "--react-version 18.2.0 --database postgresql\n"
            "  rails-react-graphql generate my-app --no-typescript --no-testing --no-docker\n"
            "  rails-react-graphql rollback --project-path ./my-app\n"
        ),
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    generate = subparsers.add_parser(
        "generate", aliases=["g"], help="Generate a new Rails React GraphQL project"
    )
    generate.add_argument(
        "project_name", nargs="?", default=None, help="Name of the project to generate"
    )
    generate.add_argument(
        "-y", "--yes", action="store_true", help="Skip interactive prompts and use defaults"
    )
    generate.add_argument("--rails-version", default=None, help="Rails version to use (default: 7.1.0)")
    generate.add_argument("--react-version", default=None, help="React version to use (default: 18.2.0)")
    generate.add_argument("--database", default=None, help="Database type: postgresql or sqlite")
    generate.add_argument("--build-tool", default=None, help="React build tool: vite or webpack")
    generate.add_argument("--package-manager", default=None, help="Package manager: pnpm, npm or yarn")
    for flag, help_text in (
        ("typescript", "Disable TypeScript support"),
        ("testing", "Disable testing setup"),
        ("linting", "Disable linting and formatting"),
        ("authentication", "Disable authentication boilerplate"),
        ("api-docs", "Disable API documentation setup"),
        ("git", "Skip Git repository initialization"),
        ("docker", "Skip Docker configuration"),
    ):
        generate.add_argument(
            f"--no-{flag}",
            dest=flag.replace("-", "_"),
            action="store_false",
            help=help_text,
        )

    rollback = subparsers.add_parser("rollback", help="Rollback the last project generation")
    rollback.add_argument("--project-path", default=None, help="Path to the project to rollback")
    rollback.add_argument("--backup", default=None, help="Name of the backup snapshot to restore")
    rollback.add_argument("--list-backups", action="store_true", help="List available backups and exit")
    rollback.add_argument("-y", "--yes", action="store_true", help="Do not ask for confirmation")

    subparsers.add_parser("help", help="Show detailed help information")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``rails-react-graphql`` / ``python -m rails_react_graphql``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command in (None, "help"):
        parser.print_help()
        sys.exit(EXIT_OK)

    settings = Settings.from_env()
    set_debug(settings.debug)
    coordinator = RecoveryCoordinator(settings)

    if args.command == "rollback":
        sys.exit(run_rollback(args, coordinator))

    coordinator.install()
    try:
        code = run_generate(args, coordinator)
    except Exception as exc:
        # The hooks are removed below, before sys.excepthook would see this.
        coordinator.fail(exc, "uncaught exception")
    finally:
        coordinator.uninstall()
    sys.exit(code)


if __name__ == "__main__":
    main()
