"""Command line interface for the AviUtl2 plugin workflow tool."""
from __future__ import annotations

from argparse import ArgumentParser, Namespace
from pathlib import Path
from typing import Iterable
import sys

from core.console import Console

from . import __version__
from .catalog import write_catalog
from .config import load_config
from .context import Context
from .develop import (
    prepare_all,
    prepare_artifacts,
    prepare_host,
    prepare_schema,
    run_develop,
    run_preview,
)
from .errors import Au2Error
from .release import package_release
from .scaffold import init_project


def _add_profile_argument(parser: ArgumentParser, default_hint: str) -> None:
    parser.add_argument("-p", "--profile", help=f"Profile to resolve artifacts with (default: {default_hint})")


def _build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="au2", description="AviUtl2 plugin development workflow")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-q", "--quiet", action="store_true", help="Only print errors")
    verbosity.add_argument("-v", "--verbose", action="store_true", help="Print debug output")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create aviutl2.toml in the current directory")

    prepare_parser = subparsers.add_parser(
        "prepare",
        help="Set up the development environment (prepare:schema, prepare:aviutl2, prepare:artifacts)",
    )
    prepare_parser.add_argument("--force", action="store_true", help="Overwrite existing files")

    subparsers.add_parser("prepare:schema", help="Write the config JSON Schema into .aviutl2-cli")
    subparsers.add_parser("prepare:aviutl2", help="Download AviUtl2 into the development directory")

    artifacts_parser = subparsers.add_parser(
        "prepare:artifacts", help="Place artifacts into the development directory"
    )
    artifacts_parser.add_argument("--force", action="store_true", help="Overwrite existing files")
    _add_profile_argument(artifacts_parser, "debug")
    artifacts_parser.add_argument("--refresh", action="store_true", help="Re-download URL sources")

    develop_parser = subparsers.add_parser(
        "develop", aliases=["dev"], help="Build artifacts, place them and start AviUtl2"
    )
    _add_profile_argument(develop_parser, "debug")
    develop_parser.add_argument("-s", "--skip-start", action="store_true", help="Do not start AviUtl2")
    develop_parser.add_argument("--refresh", action="store_true", help="Re-download URL sources")
    develop_parser.add_argument("args", nargs="*", metavar="ARGS", help="Arguments passed to AviUtl2 (after --)")

    preview_parser = subparsers.add_parser("preview", help="Install the release build into a preview AviUtl2")
    _add_profile_argument(preview_parser, "release")
    preview_parser.add_argument("-s", "--skip-start", action="store_true", help="Do not start AviUtl2")
    preview_parser.add_argument("--refresh", action="store_true", help="Re-download URL sources")

    release_parser = subparsers.add_parser("release", help="Create the release package")
    _add_profile_argument(release_parser, "release")
    release_parser.add_argument("--set-version", help="Override project.version for this release")
    release_parser.add_argument("--refresh", action="store_true", help="Re-download URL sources")

    subparsers.add_parser("catalog", help="Write catalog.json for package installers")
    return parser


def _parse_arguments(argv: Iterable[str]) -> Namespace:
    return _build_parser().parse_args(list(argv))


def _console_level(args: Namespace) -> str:
    if getattr(args, "quiet", False):
        return "error"
    if getattr(args, "verbose", False):
        return "debug"
    return "info"


def main(argv: Iterable[str] | None = None) -> int:
    args = _parse_arguments(sys.argv[1:] if argv is None else argv)
    console = Console(_console_level(args))
    ctx = Context.create(Path.cwd(), console=console)

    try:
        return _dispatch(args, ctx)
    except (Au2Error, OSError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


def _dispatch(args: Namespace, ctx: Context) -> int:
    if args.command == "init":
        return _handle_init(args, ctx)
    if args.command == "prepare":
        return _handle_prepare(args, ctx)
    if args.command == "prepare:schema":
        return _handle_prepare_schema(args, ctx)
    if args.command == "prepare:aviutl2":
        return _handle_prepare_aviutl2(args, ctx)
    if args.command == "prepare:artifacts":
        return _handle_prepare_artifacts(args, ctx)
    if args.command in {"develop", "dev"}:
        return _handle_develop(args, ctx)
    if args.command == "preview":
        return _handle_preview(args, ctx)
    if args.command == "release":
        return _handle_release(args, ctx)
    if args.command == "catalog":
        return _handle_catalog(args, ctx)
    raise ValueError(f"Unknown command: {args.command}")


def _handle_init(args: Namespace, ctx: Context) -> int:
    init_project(ctx.workspace, ctx.console)
    return 0


def _handle_prepare(args: Namespace, ctx: Context) -> int:
    prepare_all(ctx, load_config(ctx.workspace), force=args.force)
    return 0


def _handle_prepare_schema(args: Namespace, ctx: Context) -> int:
    prepare_schema(ctx)
    return 0


def _handle_prepare_aviutl2(args: Namespace, ctx: Context) -> int:
    prepare_host(ctx, load_config(ctx.workspace))
    return 0


def _handle_prepare_artifacts(args: Namespace, ctx: Context) -> int:
    prepare_artifacts(
        ctx,
        load_config(ctx.workspace),
        force=args.force,
        profile=args.profile,
        refresh=args.refresh,
    )
    return 0


def _handle_develop(args: Namespace, ctx: Context) -> int:
    run_develop(
        ctx,
        load_config(ctx.workspace),
        profile=args.profile,
        skip_start=args.skip_start,
        refresh=args.refresh,
        args=list(args.args or []),
    )
    return 0


def _handle_preview(args: Namespace, ctx: Context) -> int:
    run_preview(
        ctx,
        load_config(ctx.workspace),
        profile=args.profile,
        skip_start=args.skip_start,
        refresh=args.refresh,
    )
    return 0


def _handle_release(args: Namespace, ctx: Context) -> int:
    config = load_config(ctx.workspace)
    if args.set_version:
        config.project.version = args.set_version
    package_release(ctx, config, profile=args.profile, refresh=args.refresh)
    return 0


def _handle_catalog(args: Namespace, ctx: Context) -> int:
    write_catalog(ctx, load_config(ctx.workspace))
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
