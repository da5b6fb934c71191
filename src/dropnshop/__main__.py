"""Command-line entry point: ``python -m dropnshop``."""

from __future__ import annotations

import argparse
import asyncio
import contextlib
import logging

from dropnshop.config import DEFAULT_SETTINGS_FILE, VaultSettings
from dropnshop.exceptions import VaultConfigError, VaultError
from dropnshop.vault import Vault

_logger = logging.getLogger(__name__)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="dropnshop", description="Run the drop'n'shop vault controller")
    parser.add_argument(
        "--settings",
        default=DEFAULT_SETTINGS_FILE,
        help=f"Path to the YAML settings file (default: {DEFAULT_SETTINGS_FILE})",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


async def _run(settings: VaultSettings) -> int:
    async with Vault(settings) as vault:
        try:
            await vault.run()
        except VaultError as exc:
            _logger.error("Vault stopped: %s", exc)
            return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        settings = VaultSettings.from_yaml(args.settings)
    except VaultConfigError as exc:
        _logger.error("%s", exc)
        return 1

    _logger.info("Starting drop'n'shop, hardware API at %s", settings.hardware_api)
    with contextlib.suppress(KeyboardInterrupt):
        return asyncio.run(_run(settings))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
