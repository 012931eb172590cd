#!/usr/bin/env python3
# main.py
"""
StataGen - Stata do-file wizard for empirical economics

CLI entry point for the three-stage wizard:
topic intake → variable review → workbench code generation.

Usage:
    python main.py --topic "数字经济发展对城市碳排放的影响" --method benchmark:0
    python main.py --topic "..." --all basic --interactive
    python main.py --list-methods
    python main.py --help

Output:
    runs/Job_{timestamp}/analysis.do     # All generated sections
    runs/Job_{timestamp}/variables.json  # Confirmed taxonomy
"""

import argparse
import asyncio
import os
import sys
from typing import List, Tuple

from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from statagen.catalog import CATEGORY_IDS, CATEGORY_LABELS, all_selectors, list_methods, parse_method_selector
from statagen.errors import InvalidRoleConfiguration, InvalidVariableName, StataGenError, UnknownMethod
from statagen.progress import (
    get_console, print_code_section, print_error, print_header, print_info, print_notices,
    print_success, print_taxonomy, print_warning, start_progress, stop_progress,
)
from statagen.session import WizardSession


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="StataGen: Stata do-file wizard for empirical economics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --topic "数字经济发展对城市碳排放的影响" --method benchmark:0 --method robust:8
  python main.py --topic "Minimum wage and employment" --all basic --interactive

Method selectors:
  CATEGORY:INDEX or CATEGORY:NAME, with CATEGORY one of basic, benchmark,
  robust, endo, hetero. Use --list-methods to see the catalog.
        """
    )

    parser.add_argument("--topic", type=str, default="",
                        help="Research topic (required unless --list-methods)")
    parser.add_argument("--field", type=str, default=None,
                        help="Research field (default: from config)")

    parser.add_argument("--controls", type=int, default=None, help="Number of control variables (1-20)")
    parser.add_argument("--fixed-effects", type=int, default=None, help="Number of fixed-effect variables (0-5)")
    parser.add_argument("--mechanisms", type=int, default=None, help="Number of mechanism variables (1-5)")
    parser.add_argument("--heteros", type=int, default=None, help="Number of heterogeneity variables (0-5)")

    parser.add_argument("--method", action="append", default=[], metavar="CATEGORY:KEY",
                        help="Method to generate code for (repeatable)")
    parser.add_argument("--all", action="append", default=[], metavar="CATEGORY", choices=CATEGORY_IDS,
                        help="Generate every method of a category (repeatable)")

    parser.add_argument("--interactive", action="store_true",
                        help="Review and edit the suggested variables before generating code")
    parser.add_argument("--config", type=str, default="config.yaml",
                        help="Path to configuration file (default: config.yaml)")
    parser.add_argument("--runs", type=str, default="runs",
                        help="Path to runs output directory (default: runs)")
    parser.add_argument("--dry-run", action="store_true",
                        help="Validate setup without making API calls")
    parser.add_argument("--list-methods", action="store_true",
                        help="Print the method catalog and exit")

    return parser.parse_args(argv)


def build_method_queue(args) -> List[Tuple[str, str]]:
    """Resolve --all and --method selectors into (category, method name) pairs."""
    queue = []
    for category in args.all:
        queue.extend((cat, method.name) for cat, method in all_selectors(category))
    for selector in args.method:
        category, method = parse_method_selector(selector)
        queue.append((category, method.name))
    return queue


def validate_setup(args) -> bool:
    """
    Validate that the environment is properly configured.

    Returns:
        True if setup is valid, False otherwise
    """
    errors = []
    warnings = []

    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key and not os.getenv("GOOGLE_GENAI_USE_VERTEXAI"):
        errors.append("Missing GEMINI_API_KEY or GOOGLE_API_KEY environment variable")

    if not args.topic.strip():
        errors.append("No --topic specified")

    try:
        queue = build_method_queue(args)
        if not queue:
            warnings.append("No --method or --all given; only the variable taxonomy will be produced")
    except UnknownMethod as e:
        errors.append(str(e))

    if errors:
        for error in errors:
            print_error(error)
        return False

    for warning in warnings:
        print_warning(warning)

    print_success("Setup validation passed")
    return True


def print_catalog() -> None:
    """Print every category and its methods."""
    console = get_console()
    for category in CATEGORY_IDS:
        table = Table(title=f"{category} - {CATEGORY_LABELS[category]}")
        table.add_column("#", justify="right", style="dim")
        table.add_column("Method")
        table.add_column("Hint", style="cyan")
        for i, method in enumerate(list_methods(category)):
            table.add_row(str(i), method.name, method.hint)
        console.print(table)


def interactive_review(session: WizardSession) -> None:
    """Let the user rename/relabel variables, go back, or confirm."""
    while True:
        print_taxonomy(session.state.variables)
        choice = Prompt.ask(
            "Action (r = rename, l = relabel, b = back to topic, c = confirm)",
            choices=["r", "l", "b", "c"],
            default="c",
        )

        if choice == "c":
            return

        if choice == "b":
            session.return_to_topic()
            session.set_topic(Prompt.ask("Research topic", default=session.state.topic))
            return

        index = IntPrompt.ask("Variable #")
        try:
            if choice == "r":
                session.rename_variable(index, Prompt.ask("New name"))
            else:
                session.relabel_variable(index, Prompt.ask("New label"))
        except (InvalidVariableName, IndexError) as e:
            print_error(str(e))


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    from statagen.utils import load_dotenv_if_exists
    load_dotenv_if_exists()

    print_header("StataGen 19 / SE")

    if args.list_methods:
        print_catalog()
        sys.exit(0)

    print_info(f"Topic: {args.topic}")

    if not validate_setup(args):
        print_error("Setup validation failed. Please fix the errors above.")
        sys.exit(1)

    if args.dry_run:
        print_success("Dry run complete. Setup is valid.")
        sys.exit(0)

    from statagen.client import create_client
    from statagen.graph import run_pipeline
    from statagen.state import DEFAULT_FIELD, Stage, create_initial_state
    from statagen.utils import (
        create_run_directory, load_config, role_config_from, save_do_file, save_taxonomy,
    )

    config = load_config(args.config)
    queue = build_method_queue(args)

    try:
        state = create_initial_state(
            topic=args.topic,
            field=args.field or config.get("defaults", {}).get("field", DEFAULT_FIELD),
            role_config=role_config_from(config),
        )
        session = WizardSession(create_client(config), config, state)
        session.configure_roles(
            control_count=args.controls,
            fixed_effect_count=args.fixed_effects,
            mechanism_count=args.mechanisms,
            hetero_count=args.heteros,
        )
    except InvalidRoleConfiguration as e:
        print_error(str(e))
        sys.exit(1)

    run_dir = create_run_directory(args.runs)
    start_progress(run_dir, live=not args.interactive)

    try:
        review_hook = interactive_review if args.interactive else None
        final_state = asyncio.run(run_pipeline(session, queue, run_dir, review_hook))
    except KeyboardInterrupt:
        print_error("Interrupted by user")
        sys.exit(1)
    except StataGenError as e:
        print_error(f"Wizard failed: {e}")
        raise
    finally:
        stop_progress()

    print_notices(session.notices)

    # A taxonomy retained from an abandoned review round is not confirmed
    if session.state.stage == Stage.TOPIC_INTAKE:
        print_error("No confirmed variable taxonomy; nothing to export.")
        sys.exit(1)

    print_taxonomy(session.state.variables)
    taxonomy_path = save_taxonomy(run_dir, session.state)
    print_info(f"Taxonomy: {taxonomy_path}")

    if final_state.get("generated"):
        for category in CATEGORY_IDS:
            for section in reversed(session.state.sections(category)):
                print_code_section(section)
        do_path = save_do_file(run_dir, session.state)
        print_success(f"Generated {len(final_state['generated'])} section(s)")
        print_info(f"Do-file: {do_path}")

    if final_state.get("failed"):
        print_warning(f"{len(final_state['failed'])} method(s) failed: {', '.join(final_state['failed'])}")


if __name__ == "__main__":
    main()
