"""
AuthFlow Command-Line Entry Point.

Bootstraps the dependency graph via constructor injection, mounts the
auth controller for one mode, applies the pre-render guard, submits the
given fields and prints the outcome.  Every subsystem is wired here; no
module-level globals beyond the cached configuration.

Usage::

    python main.py login --field email=admin@example.com --field password=Secret123 \\
        --search "?redirectTo=%2Fsettings" --admin-exists
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Optional, Sequence

from authflow.config import get_config
from authflow.container import create_services
from authflow.errors import AuthFlowError
from authflow.logger import StructuredLogger, get_logger
from authflow.models.enums import AuthMode
from authflow.services.transport import HttpTransport


def _parse_value(raw: str) -> object:
    lowered = raw.lower()
    if lowered in ("true", "false"):
        return lowered == "true"
    return raw


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="authflow",
        description="Drive one admin authentication flow against the identity service.",
    )
    parser.add_argument("mode", help=f"One of: {', '.join(m.value for m in AuthMode)}")
    parser.add_argument(
        "--field",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Form field (dotted names for nested fields, e.g. userInfo.news=true).",
    )
    parser.add_argument("--search", default="", help="Query string, e.g. '?code=abc123'.")
    parser.add_argument("--admin-exists", action="store_true", help="An admin user already exists.")
    parser.add_argument("--validate", action="store_true", help="Validate fields before submitting.")
    return parser


async def run(argv: Optional[Sequence[str]] = None) -> int:
    """Mount, guard, (validate,) submit.  Returns a process exit code."""
    args = build_parser().parse_args(argv)
    logger: StructuredLogger = get_logger("authflow.main")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Service container (single composition root)
    # ------------------------------------------------------------------
    services = create_services(config=config, admin_exists=args.admin_exists)
    controller = services["controller"]

    # ------------------------------------------------------------------
    # 3. Mount, guard, submit
    # ------------------------------------------------------------------
    try:
        async with controller.mounted(args.mode, search=args.search):
            redirect = controller.guard()
            if redirect is not None:
                print(json.dumps({"redirect": str(redirect)}))
                return 0

            for item in args.field:
                name, sep, value = item.partition("=")
                if not sep:
                    logger.error("Malformed --field %r (expected NAME=VALUE).", item)
                    return 2
                controller.change_field(name, _parse_value(value))

            if args.validate:
                errors = controller.validate()
                if errors:
                    print(json.dumps({"validation_errors": errors}))
                    return 1

            outcome = await controller.submit()
            print(json.dumps({
                "outcome": outcome.model_dump(mode="json"),
                "form_errors": controller.state.form_errors,
                "submitting": controller.submitting,
            }))
            return 0 if outcome.succeeded else 1
    finally:
        transport = services["transport"]
        if isinstance(transport, HttpTransport):
            await transport.aclose()


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Application entry point."""
    try:
        sys.exit(asyncio.run(run(argv)))
    except KeyboardInterrupt:
        pass
    except AuthFlowError as exc:
        sys.stderr.write(f"authflow: {exc}\n")
        sys.exit(1)


if __name__ == "__main__":
    main()
