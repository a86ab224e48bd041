"""Command-line entrypoint for one test instance."""

import asyncio
import logging
import sys

from pydantic import ValidationError

from instance_coordinator.application import RunResult
from instance_coordinator.bootstrap import build_orchestrator, build_sync_client
from instance_coordinator.config import Settings
from instance_coordinator.domain.errors import OutcomeReportError

EXIT_UNREPORTED = 2

logger = logging.getLogger(__name__)


async def run_instance(settings: Settings) -> RunResult:
    """Run the instance protocol with a session that is closed afterwards."""

    sync_client = build_sync_client(settings)
    try:
        return await build_orchestrator(settings, sync_client).run()
    finally:
        await sync_client.close()


def main() -> int:
    """Run one instance and return the process exit code."""

    try:
        settings = Settings()
    except ValidationError as exc:
        logging.basicConfig(level=logging.ERROR)
        logger.error("Invalid settings: %s", exc)
        return EXIT_UNREPORTED

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        result = asyncio.run(run_instance(settings))
    except OutcomeReportError as exc:
        logger.critical("Could not report the outcome: %s", exc)
        return EXIT_UNREPORTED
    return result.exit_code


def run() -> None:
    """Console script wrapper."""

    sys.exit(main())


__all__ = ["main", "run", "run_instance"]


if __name__ == "__main__":
    run()
