"""Command-line entry point for the URL clipper."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Iterable, Optional, Sequence

from .clipper import clip_to_note
from .config import ClipperSettings, ExtractMode, load_settings, save_settings
from .picker import pick_locator

logger = logging.getLogger("url_clipper.cli")

_MODES = [mode.value for mode in ExtractMode]


def _ensure_command_prefix(argv: Sequence[str], commands: Iterable[str]) -> Sequence[str]:
    if not argv:
        return argv
    first = argv[0]
    if first in commands or first.startswith("-"):
        return argv
    return ("clip", *argv)


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: $URL_CLIPPER_CONFIG or ~/.config/url-clipper/settings.json)",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _add_clip_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Page to clip")
    parser.add_argument("note", type=Path, help="Existing Markdown note to insert into")
    parser.add_argument(
        "--mode",
        choices=_MODES,
        default=None,
        help="Content extraction mode (default: the configured default_mode)",
    )
    parser.add_argument(
        "--path",
        dest="content_path",
        default=None,
        help="CSS selector or XPath expression used in css/xpath mode",
    )
    parser.add_argument(
        "--pick",
        action="store_true",
        help="Open a browser window and double-click the content element to select it",
    )
    parser.add_argument(
        "--line",
        type=int,
        default=None,
        help="Insert before this 1-based line of the note (default: append)",
    )
    parser.add_argument(
        "--no-images",
        action="store_true",
        help="Keep remote image URLs instead of downloading them",
    )
    parser.add_argument(
        "--prefix",
        default=None,
        help="File name prefix for downloaded images",
    )
    _add_common_arguments(parser)


def _add_pick_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("url", help="Page to open in the picker")
    parser.add_argument(
        "--mode",
        choices=[ExtractMode.CSS.value, ExtractMode.XPATH.value],
        default=None,
        help="Print only the locator for this mode (default: both)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up after this many seconds without a confirmed pick",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the browser headless (only useful for scripted picks)",
    )
    _add_common_arguments(parser)


def _add_config_arguments(parser: argparse.ArgumentParser) -> None:
    actions = parser.add_subparsers(dest="action", required=True)
    actions.add_parser("show", help="Print the current settings as JSON")
    set_parser = actions.add_parser("set", help="Change one setting")
    set_parser.add_argument("key", help="Setting name, e.g. download_images")
    set_parser.add_argument("value", help="New value")
    _add_common_arguments(parser)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Clip the main content of a web page into a Markdown note.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    clip_parser = subparsers.add_parser(
        "clip", help="Fetch a page and insert its content into a note"
    )
    _add_clip_arguments(clip_parser)

    pick_parser = subparsers.add_parser(
        "pick", help="Pick an element interactively and print its CSS path and XPath"
    )
    _add_pick_arguments(pick_parser)

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    _add_config_arguments(config_parser)

    argv = list(sys.argv[1:] if argv is None else argv)
    argv = list(_ensure_command_prefix(argv, subparsers.choices.keys()))
    return parser.parse_args(argv)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


def _run_clip(args: argparse.Namespace, settings: ClipperSettings) -> int:
    if args.no_images:
        settings.download_images = False
    if args.prefix is not None:
        settings.image_prefix = args.prefix

    mode = ExtractMode.parse(args.mode or settings.default_mode)
    content_path: Optional[str] = args.content_path
    if args.pick and mode is ExtractMode.AUTO:
        logger.error("--pick needs --mode css or --mode xpath")
        return 2
    if args.pick:
        locator = asyncio.run(
            pick_locator(args.url, navigation_timeout=settings.request_timeout)
        )
        if locator is None:
            logger.error("No element was selected")
            return 1
        content_path = locator.for_mode(mode)
        logger.info("Using %s path %s", mode.value, content_path)
    if content_path is None:
        content_path = settings.content_path if mode is not ExtractMode.AUTO else ""
    if mode is not ExtractMode.AUTO and not content_path.strip():
        logger.error("Mode %s needs --path or --pick", mode.value)
        return 2

    outcome = asyncio.run(
        clip_to_note(
            args.url,
            args.note.resolve(),
            settings,
            mode=mode,
            content_path=content_path,
            cursor_line=args.line,
        )
    )
    if outcome.ok and outcome.result is not None:
        logger.debug(
            "Inserted %d characters with %d local image(s)",
            len(outcome.result.markdown),
            len(outcome.result.images),
        )
    return 0 if outcome.ok else 1


def _run_pick(args: argparse.Namespace, settings: ClipperSettings) -> int:
    locator = asyncio.run(
        pick_locator(
            args.url,
            timeout=args.timeout,
            headless=args.headless,
            navigation_timeout=settings.request_timeout,
        )
    )
    if locator is None:
        logger.error("No element was selected")
        return 1
    picked = {"css": locator.css, "xpath": locator.xpath}
    if args.mode is not None:
        picked = {args.mode: locator.for_mode(ExtractMode.parse(args.mode))}
    sys.stdout.write(json.dumps(picked) + "\n")
    sys.stdout.flush()
    return 0


def _run_config(args: argparse.Namespace, settings: ClipperSettings) -> int:
    if args.action == "set":
        try:
            settings.update(args.key, args.value)
        except (KeyError, ValueError) as exc:
            logger.error("%s", exc.args[0] if exc.args else exc)
            return 2
        path = save_settings(settings, args.config)
        logger.info("Saved %s to %s", args.key, path)
    sys.stdout.write(json.dumps(settings.to_dict(), indent=2, ensure_ascii=False) + "\n")
    sys.stdout.flush()
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = load_settings(args.config)
    except ValueError as exc:
        _configure_logging(args.verbose)
        logger.error("Could not read settings: %s", exc)
        return 2
    _configure_logging(args.verbose or settings.debug)

    if args.command == "clip":
        return _run_clip(args, settings)
    if args.command == "pick":
        return _run_pick(args, settings)
    return _run_config(args, settings)


if __name__ == "__main__":
    sys.exit(main())
