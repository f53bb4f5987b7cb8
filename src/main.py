# src/main.py — v2
"""CLI entry point: bump-version, check, wipe commands.

Usage:
    staleguard bump-version <file> [major|minor|patch]
    staleguard check --origin <url> --profile <dir> [--force]
    staleguard wipe --origin <url> --profile <dir>
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from staleguard.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="staleguard",
        description=f"staleguard v{__version__}: keeps web clients on the deployed build",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- bump-version ---
    p_bump = subparsers.add_parser(
        "bump-version", help="Bump the version in a version descriptor file",
    )
    p_bump.add_argument("file", type=Path, help="Path to version.json")
    p_bump.add_argument(
        "part", nargs="?", default="patch", choices=["major", "minor", "patch"],
        help="Version component to bump (default: patch)",
    )
    p_bump.set_defaults(func=_cmd_bump_version)

    # --- check ---
    p_check = subparsers.add_parser(
        "check", help="Run one version reconciliation against an origin",
    )
    p_check.add_argument("--origin", required=True, help="Site origin, e.g. https://example.com")
    p_check.add_argument(
        "--profile", type=Path, required=True,
        help="Profile directory holding the durable client state",
    )
    p_check.add_argument(
        "--force", action="store_true",
        help="Ignore the update check interval",
    )
    p_check.set_defaults(func=_cmd_check)

    # --- wipe ---
    p_wipe = subparsers.add_parser(
        "wipe", help="Wipe every storage surface of a profile",
    )
    p_wipe.add_argument("--origin", required=True, help="Site origin")
    p_wipe.add_argument(
        "--profile", type=Path, required=True, help="Profile directory",
    )
    p_wipe.set_defaults(func=_cmd_wipe)

    return parser


async def _cmd_bump_version(args: argparse.Namespace) -> int:
    """Bump the semantic version in a descriptor file."""
    from staleguard.tools.bump_version import bump_version_file

    file_path: Path = args.file
    if not file_path.exists():
        logger.error("File not found: %s", file_path)
        return 1

    old, new = bump_version_file(file_path, args.part)
    print("\nVersion updated:")
    print(f"  Old version:  {old}")
    print(f"  New version:  {new}")
    print(f"  Update type:  {args.part}")
    print("\nClients will hard-reset onto the new build on their next check.")
    return 0


async def _cmd_check(args: argparse.Namespace) -> int:
    """Reconcile a durable profile with the deployed version."""
    from staleguard.config.settings import load_settings
    from staleguard.page.host import RecordingPageHost
    from staleguard.page.reconciler import (
        KEY_APP_VERSION,
        KEY_LAST_UPDATE_CHECK,
        UpdateReconciler,
    )
    from staleguard.page.version_client import VersionClient
    from staleguard.storage.profile import open_profile
    from staleguard.worker.registration import InMemoryWorkerContainer, RegistrationManager
    from staleguard.worker.service_worker import ServiceWorker

    settings = load_settings()
    origin = args.origin.rstrip("/")
    profile = open_profile(origin, settings, root=args.profile)
    if args.force:
        await profile.local_storage.remove(KEY_LAST_UPDATE_CHECK)

    host = RecordingPageHost(origin + "/")
    container = InMemoryWorkerContainer(
        lambda url: ServiceWorker(url, profile, settings)
    )
    version_client = VersionClient(
        origin,
        endpoint=settings.version_endpoint,
        timeout_s=settings.version_timeout_s,
    )
    reconciler = UpdateReconciler(
        profile, RegistrationManager(container), host, version_client, settings
    )
    try:
        outcome = await reconciler.check_for_update()
    finally:
        await version_client.aclose()

    print(f"\nCheck for {origin}:")
    print(f"  Outcome:        {outcome.value}")
    print(f"  Local version:  {await profile.local_storage.get(KEY_APP_VERSION)}")
    if reconciler.last_navigation:
        print(f"  Reload URL:     {reconciler.last_navigation}")
    if reconciler.last_error:
        print(f"  Error:          {reconciler.last_error}")
        return 1
    return 0


async def _cmd_wipe(args: argparse.Namespace) -> int:
    """Wipe a durable profile."""
    from staleguard.config.settings import load_settings
    from staleguard.storage.profile import open_profile
    from staleguard.storage.wiper import StorageWiper

    profile_root: Path = args.profile
    if not profile_root.is_dir():
        logger.error("Not a directory: %s", profile_root)
        return 1

    profile = open_profile(args.origin.rstrip("/"), load_settings(), root=profile_root)
    report = await StorageWiper(profile).wipe_all()

    print(f"\nWipe of {profile.root}:")
    print(f"  Cache buckets deleted:  {report.caches_deleted}")
    print(f"  Local storage cleared:  {report.local_storage}")
    print(f"  Databases deleted:      {report.databases_deleted}")
    for step, error in report.errors.items():
        print(f"  Failed {step}: {error}")
    return 0 if report.succeeded else 1


def _setup_logging(verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from staleguard.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else "INFO",
        log_format="text",
        stream=sys.stderr,
    )
    # Quiet noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
