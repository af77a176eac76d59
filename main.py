#!/usr/bin/env python3
"""
Main entry point for the Development Tools Bridge
"""

import asyncio
import argparse
import json
import logging
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from toolbridge.core import ToolBridgeSession, create_session
from toolbridge.errors import ToolBridgeError
from toolbridge.integrations import ConsoleNotifier
from toolbridge.models import CapabilityKind
from toolbridge.platform import create_platform_service
from toolbridge.utils.logging import setup_root_logger
from config.settings import Settings


def parse_arguments(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Discover, activate and install .NET language, build and debug tools"
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Logging level (default: from settings, INFO)"
    )

    parser.add_argument(
        "--mock-platform",
        action="store_true",
        help="Use the mock platform service instead of probing this machine"
    )

    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Answer every prompt with its first option"
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("status", help="Activate providers and show which one serves each kind")
    commands.add_parser("check", help="Detect missing tools and offer to install them")
    commands.add_parser("install", help="Detect missing tools and pick which ones to install")
    commands.add_parser("restart", help="Restart the active language server")

    for name, help_text in (
        ("build", "Build a project with the active build provider"),
        ("clean", "Clean a project with the active build provider"),
        ("restore", "Restore a project's packages with the active build provider"),
        ("debug-config", "Print a debug configuration for a project"),
    ):
        command = commands.add_parser(name, help=help_text)
        command.add_argument("project", help="Path to the project file (.csproj)")

    build = commands.choices["build"]
    build.add_argument("--configuration", default="Debug", help="Build configuration (default: Debug)")
    build.add_argument("--platform", default="Any CPU", help="Target platform (default: Any CPU)")

    return parser.parse_args(argv)


def load_config(args) -> Settings:
    """Load settings from the environment and apply command line overrides."""
    settings = Settings()
    if args.log_level:
        settings.logging.level = args.log_level
    if args.mock_platform:
        settings.mock_platform = True
    if args.yes:
        settings.installer.assume_yes = True
    return settings


async def run_command(args, session: ToolBridgeSession, logger: logging.Logger) -> int:
    """Run one subcommand and return the process exit code."""
    status = await session.registry.auto_activate()

    if args.command == "status":
        for kind, name in status.items():
            print(f"{kind.value:<10} {name or '-'}")
        return 0

    if args.command in ("check", "install"):
        missing = await session.classifier.scan()
        if args.command == "check":
            results = await session.orchestrator.prompt_for_remediation(missing)
        elif missing:
            results = await session.orchestrator.selective_install(missing)
        else:
            print("All .NET tools are properly configured!")
            results = []

        installed = sum(1 for r in results if r.succeeded)
        failed = sum(1 for r in results if r.failed)
        logger.info("=" * 60)
        logger.info("SUMMARY")
        logger.info("=" * 60)
        logger.info(f"Missing tools: {len(missing)}")
        logger.info(f"Attempted: {len(results)}")
        logger.info(f"Installed: {installed}")
        logger.info(f"Failed: {failed}")
        for result in results:
            if result.failed:
                logger.info(f"  {result.tool_name}: {result.reason}")
        logger.info("=" * 60)
        return 1 if failed else 0

    if args.command == "restart":
        return 0 if await session.registry.restart_active() else 1

    if args.command == "debug-config":
        provider = session.registry.active(CapabilityKind.DEBUG)
        if provider is None:
            logger.error("No debug provider is available")
            return 1
        configuration = await provider.create_debug_configuration(args.project)
        print(json.dumps(configuration, indent=2))
        return 0

    provider = session.registry.active(CapabilityKind.BUILD)
    if provider is None:
        logger.error("No build provider is available")
        return 1

    if args.command == "build":
        result = await provider.build(args.project, args.configuration, args.platform)
    elif args.command == "clean":
        result = await provider.clean(args.project)
    else:
        result = await provider.restore(args.project)

    if result.output:
        print(result.output)
    for warning in result.warnings:
        logger.warning(warning)
    for error in result.errors:
        logger.error(error)
    logger.info(f"{args.command.capitalize()} {'succeeded' if result.success else 'failed'}")
    return 0 if result.success else 1


async def main(argv=None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    settings = load_config(args)

    # Setup logging
    setup_root_logger(
        settings.logging.file_path,
        settings.logging.level,
        max_file_size_mb=settings.logging.max_file_size_mb,
        backup_count=settings.logging.backup_count,
        format_string=settings.logging.format
    )

    logger = logging.getLogger(__name__)

    logger.info("Starting Development Tools Bridge")
    logger.debug(f"Arguments: {vars(args)}")

    platform = create_platform_service(
        force_mock=settings.mock_platform,
        command_timeout=settings.installer.command_timeout_seconds
    )
    notifier = ConsoleNotifier(
        assume_yes=settings.installer.assume_yes,
        log_file=settings.logging.file_path
    )
    session = create_session(settings, platform, notifier, logger=logging.getLogger("toolbridge"))

    try:
        return await run_command(args, session, logger)
    except ToolBridgeError as e:
        logger.error(str(e))
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        return 1
    finally:
        await session.close()


def cli():
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
