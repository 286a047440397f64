"""Entrypoint for ``python -m bitfleet_orchestrator``.

Runs the full session lifecycle once: create a browser session, attach
Playwright, visit a page, take a screenshot, then close and delete the
session.  Any unrecovered error is logged and turns into exit status 1.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from .config import OrchestratorSettings, load_settings
from .logging_setup import configure_logging
from .orchestrator import SessionOrchestrator

LOGGER = logging.getLogger("bitfleet_orchestrator")

SEARCH_BOX_SCRIPT = """
(text) => {
  const box = document.querySelector('input[name="q"], textarea[name="q"]');
  if (box) { box.value = text; }
  return Boolean(box);
}
"""


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="bitfleet_orchestrator", description=__doc__)
    parser.add_argument("--url", default="https://www.google.com")
    parser.add_argument("--query", default="Playwright remote browser integration")
    parser.add_argument("--screenshot", type=Path, default=Path("screenshot.png"))
    parser.add_argument("--remark", default="Integration with Playwright")
    parser.add_argument(
        "--pause",
        type=float,
        default=5.0,
        help="seconds to wait before disconnecting and before deleting",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: OrchestratorSettings) -> None:
    async with SessionOrchestrator(settings) as orchestrator:
        LOGGER.info("Creating browser session...")
        session_id = await orchestrator.create_session({"remark": args.remark})

        LOGGER.info("Connecting Playwright to session %s...", session_id)
        await orchestrator.connect(session_id)

        LOGGER.info("Navigating to %s...", args.url)
        await orchestrator.navigate(args.url)

        LOGGER.info("Performing actions on the page...")
        found = await orchestrator.evaluate(SEARCH_BOX_SCRIPT, args.query)
        LOGGER.info("Search box %s", "filled" if found else "not found")

        LOGGER.info("Taking screenshot...")
        await orchestrator.screenshot(path=str(args.screenshot))

        await asyncio.sleep(args.pause)
        LOGGER.info("Disconnecting Playwright...")
        await orchestrator.disconnect()

        LOGGER.info("Closing browser session...")
        await orchestrator.close_session(session_id)

        await asyncio.sleep(args.pause)
        LOGGER.info("Deleting browser session...")
        await orchestrator.delete_session(session_id)

    LOGGER.info("All operations completed successfully!")


def main(argv: list[str] | None = None) -> int:
    """Load configuration and run the demo lifecycle."""

    settings = load_settings()
    configure_logging(settings.log_level)
    args = _parse_args(argv)
    try:
        asyncio.run(run(args, settings))
    except Exception as exc:
        LOGGER.error("An error occurred: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
