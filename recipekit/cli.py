"""recipekit command-line entry point.

Usage::

    recipekit ./my-api api --skip-docker --ruby=3.4.1
    recipekit ./my-api api --recipes-dir ./recipes --skip-install
    recipekit --list

Engine options are parsed by argparse; every other ``--key`` or
``--key=value`` token is handed to the recipes as a parameter.
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

from rich.markup import escape

from recipekit import __version__
from recipekit.config import Config
from recipekit.errors import RecipeExecutionError, ScaffoldError
from recipekit.params import Params
from recipekit.scaffolder import ProjectGenerator, RecipeBook
from recipekit.utils import (
    console,
    format_duration,
    print_error,
    print_header,
    print_success,
    print_summary_table,
    print_warning,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="recipekit",
        description="recipekit -- scaffold a project from composable recipes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        allow_abbrev=False,
        epilog=(
            "Examples:\n"
            "  recipekit ./my-api api\n"
            "  recipekit ./my-api api --skip-install --api_only\n"
            "  recipekit ./my-api api --recipes-dir ./recipes --templates-dir ./files\n"
            "  recipekit --list\n"
        ),
    )
    parser.add_argument("target", nargs="?", help="Target project directory")
    parser.add_argument("recipe", nargs="?", help="Root recipe name (entry point)")
    parser.add_argument(
        "--recipes-dir",
        action="append",
        default=[],
        type=Path,
        help="Extra recipe root, searched before the bundled library (repeatable)",
    )
    parser.add_argument(
        "--templates-dir",
        action="append",
        default=[],
        type=Path,
        help="Extra copy-source root, searched before bundled files (repeatable)",
    )
    parser.add_argument(
        "--no-library",
        action="store_true",
        help="Do not include the bundled recipe library",
    )
    parser.add_argument(
        "--ecosystem",
        choices=["bundler", "pip"],
        default=None,
        help="Manifest format and installer (default: bundler)",
    )
    parser.add_argument("--skip-install", action="store_true", help="Write the manifest only")
    parser.add_argument("--no-format", action="store_true", help="Skip the formatter pass")
    parser.add_argument("--quiet", "-q", action="store_true", help="Suppress status lines")
    parser.add_argument("--list", action="store_true", help="List available recipes and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns the process exit code."""
    parser = build_parser()
    args, extra = parser.parse_known_args(argv)

    try:
        params = Params.parse(extra)
    except ValueError as exc:
        parser.error(str(exc))

    overrides: dict = {
        "use_library": not args.no_library,
        "quiet": args.quiet,
    }
    # Empty lists would mask RECIPEKIT_RECIPE_PATH / RECIPEKIT_TEMPLATE_PATH.
    if args.recipes_dir:
        overrides["recipe_dirs"] = args.recipes_dir
    if args.templates_dir:
        overrides["template_dirs"] = args.templates_dir
    install: dict = {}
    if args.ecosystem:
        install["ecosystem"] = args.ecosystem
    if args.skip_install:
        install["skip_install"] = True
    if args.no_format:
        install["run_formatter"] = False
    if install:
        overrides["install"] = install

    if args.list:
        config = Config.from_env(**overrides)
        return _list_recipes(config)

    if not args.target or not args.recipe:
        parser.error("the following arguments are required: target, recipe")

    config = Config.from_env(target_dir=Path(args.target), **overrides)

    try:
        generator = ProjectGenerator(config, params)
        if not config.quiet:
            print_header(f"Scaffolding {config.project_name} with recipe '{args.recipe}'")
        result = asyncio.run(generator.generate(args.recipe))
    except RecipeExecutionError as exc:
        print_error(f"Error: {exc.cause}")
        console.print(f"  recipe:    {exc.recipe}", highlight=False)
        console.print(f"  operation: {exc.index}", highlight=False)
        console.print(f"  stack:     {' > '.join(exc.stack)}", highlight=False)
        return 1
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        return 1

    if not config.quiet:
        print_summary_table(
            {
                "Project": str(config.target_dir),
                "Recipes applied": str(len(result.recipes)),
                "Operations": str(len(result.journal)),
                "Dependencies": str(len(result.dependencies)),
                "Installed": "yes" if result.install and result.install.installed else "no",
                "Elapsed": format_duration(result.elapsed),
            },
            title="Scaffold summary",
        )
    print_success(f"Project ready at {config.target_dir}")
    return 0


def _list_recipes(config: Config) -> int:
    try:
        book = RecipeBook.from_paths(config.recipe_search_path)
    except ScaffoldError as exc:
        print_error(f"Error: {exc}")
        return 1
    for recipe in book:
        console.print(f"[bold]{escape(recipe.name)}[/bold]  {escape(recipe.description)}", highlight=False)
    for name, unknown in book.missing_references().items():
        print_warning(f"{name}: references unknown recipes {', '.join(unknown)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
