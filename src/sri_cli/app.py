from __future__ import annotations

import argparse
import logging
import sys

from pydantic import ValidationError

from annotator.controllers.annotate_controller import annotate
from annotator.errors import AnnotatorError, UntrustedExternalAssetError
from annotator.model import AnnotateSettings
from sri_cli.core.managers.config_manager import config_manager
from sri_cli.core.utils.configure_logging import configure_logger

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNTRUSTED = 1
EXIT_FAILED = 2

help_text = """
  sri-annotate <output_path> [--public-path <prefix>] [--timeout <seconds>]
               [--log-level <level>] [--progress] [--no-color]
                      Adds integrity and crossorigin attributes to every
                      <script src> and <link href> in <output_path>/index.html.
                      Fails without writing when an external asset has no
                      integrity attribute.
""".strip()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sri-annotate",
        description="Inject Subresource Integrity hashes into a build's index.html.",
        epilog=help_text,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("output_path", help="Directory containing the build output.")
    parser.add_argument(
        "--public-path", default="/",
        help="URL prefix the build prepends to asset references (default: '/')."
    )
    parser.add_argument("--timeout", type=float, default=None, help="Timeout in seconds per external fetch.")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING or ERROR.")
    parser.add_argument("--progress", action="store_true", help="Show a progress bar while hashing.")
    parser.add_argument("--no-color", action="store_true", help="Plain text warning report.")
    return parser


def apply_overrides(args: argparse.Namespace) -> None:
    """Writes the command line flags into the in-memory configuration."""
    if args.timeout is not None:
        config_manager.set_nested("session.time_out", args.timeout)
    if args.progress:
        config_manager.set_nested("annotator.show_progress", True)
    if args.no_color:
        config_manager.set_nested("report.color", False)


def build_settings(args: argparse.Namespace) -> AnnotateSettings:
    """Merges settings.json with the command line overrides."""
    apply_overrides(args)

    return AnnotateSettings(
        index_file=config_manager.get_nested("annotator.index_file", "index.html"),
        timeout=config_manager.get_nested("session.time_out", 30.0),
        concurrency=config_manager.get_nested("session.concurrency", 50),
        show_progress=config_manager.get_nested("annotator.show_progress", False),
        color=config_manager.get_nested("report.color", True),
    )


def main(argv: list[str] | None = None) -> int:
    """Entrypoint for running the annotator from the command line."""
    args = build_parser().parse_args(argv)

    configure_logger(
        args.log_level or config_manager.get_nested("debug.level", "WARNING"),
        silenced_loggers=config_manager.get_nested("debug.silenced_loggers", {}),
    )

    try:
        settings = build_settings(args)
    except ValidationError as e:
        print(f"❌ Invalid settings: {e}", file=sys.stderr)
        return EXIT_FAILED

    try:
        report = annotate(args.output_path, args.public_path, settings=settings)
    except UntrustedExternalAssetError as e:
        print(str(e), file=sys.stderr)
        return EXIT_UNTRUSTED
    except AnnotatorError as e:
        logger.error("Annotation failed: %s", e)
        print(f"❌ {e}", file=sys.stderr)
        return EXIT_FAILED

    logger.info(
        "%s: %d asset(s) annotated, %d trusted external, %d skipped.",
        report.index_path, report.annotated, report.trusted_external, report.skipped
    )
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
