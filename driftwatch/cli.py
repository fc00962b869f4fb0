"""driftwatch command line entrypoint.

Runs one audit (default) or keeps auditing on a fixed interval. Each run
gets a fresh drift counter; the result cache carries state between runs.

Exit codes: 0 success, 1 run failed, 2 invalid configuration.
"""

from __future__ import annotations

import argparse
import asyncio
import signal
from pathlib import Path

import structlog

from driftwatch import __version__
from driftwatch.atlantis import AtlantisClient, AtlantisConfigParser, generate_repo_config
from driftwatch.cache import SqliteResultCache, open_result_cache
from driftwatch.checkout import GitCheckout
from driftwatch.config import Settings, load_settings
from driftwatch.constants import MAIN_MODULE
from driftwatch.core import CancellationToken, DirectoryFilter, Drifter, DrifterContext
from driftwatch.core.protocols import ResultCache
from driftwatch.errors import ConfigError, DriftwatchError, RunCancelled
from driftwatch.logging_config import setup_logging
from driftwatch.notifications import build_notification
from driftwatch.terraform import TerraformClient
from driftwatch.utils import parse_duration

logger = structlog.get_logger(__name__)


def build_context(settings: Settings, cache: ResultCache) -> DrifterContext:
    """Wire concrete collaborators from settings."""
    return DrifterContext(
        repo=settings.repo,
        ref=settings.ref,
        repo_config_file=settings.repo_config_file,
        checkout=GitCheckout(settings.github_token, ref=settings.ref),
        config_parser=AtlantisConfigParser(),
        plan_query=AtlantisClient(settings.atlantis_url, settings.atlantis_token),
        terraform_factory=lambda root: TerraformClient(root, binary=settings.terraform_binary),
        cache=cache,
        notification=build_notification(settings),
        cache_valid_duration=settings.cache_valid_duration,
        parallel_runs=settings.parallel_runs,
        directory_filter=DirectoryFilter(settings.directory_allowlist),
        skip_workspace_check=settings.skip_workspace_check,
        auto_generate_config=settings.auto_generate_config,
        config_generator=generate_repo_config,
    )


async def run_forever(settings: Settings, interval_s: float | None, token: CancellationToken) -> int:
    cache = await open_result_cache(settings)
    exit_code = 0
    try:
        while True:
            drifter = Drifter(build_context(settings, cache))
            try:
                report = await drifter.run(token)
                exit_code = 0
                logger.info(
                    "Drift run complete",
                    drifted=report.drifted_workspaces,
                    total=report.total_workspaces,
                    directories=report.directories,
                )
            except RunCancelled:
                logger.warning("Drift run cancelled")
                return 1
            except DriftwatchError as exc:
                logger.error("Drift run failed", error=str(exc))
                exit_code = 1

            if interval_s is None or token.cancelled:
                return exit_code
            try:
                await asyncio.wait_for(token.wait(), timeout=interval_s)
                return exit_code
            except asyncio.TimeoutError:
                continue
    finally:
        if isinstance(cache, SqliteResultCache):
            await cache.close()


async def _main_async(settings: Settings, interval_s: float | None) -> int:
    token = CancellationToken()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, token.cancel, f"received {sig.name}")
        except (NotImplementedError, RuntimeError):
            pass  # not supported on this platform/loop
    return await run_forever(settings, interval_s, token)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="driftwatch",
        description="Detect drifted and orphaned Terraform workspaces of an Atlantis repository.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Settings YAML file (env: DRIFTWATCH_CONFIG_PATH).")
    parser.add_argument("--log-level", default=None, help="Override DRIFTWATCH_LOG_LEVEL.")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--once", action="store_true", help="Run a single audit and exit (default).")
    mode.add_argument(
        "--interval",
        default=None,
        help="Keep running, waiting this long between runs (e.g. 30m, 6h).",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    args = parser.parse_args(argv)

    setup_logging(args.log_level)
    try:
        settings = load_settings(args.config)
        interval_s = parse_duration(args.interval).total_seconds() if args.interval else None
    except (ConfigError, ValueError) as exc:
        logger.error("invalid configuration", error=str(exc))
        return 2

    if settings.log_level and not args.log_level:
        setup_logging(settings.log_level)

    return asyncio.run(_main_async(settings, interval_s))


if __name__ == MAIN_MODULE:
    raise SystemExit(main())
