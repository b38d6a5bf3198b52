"""
1) Load person records from a JSON file or a GEDCOM file.
2) Optionally narrow them to the family around one person.
3) Report data-quality warnings.
4) Lay the people out as a forest of positioned nodes and typed edges.
5) Write the layout as JSON, and optionally as DOT / an image.
"""

import argparse
from dataclasses import replace
import json
import logging
from pathlib import Path
import sys

from graph import focus_people
from layout import layout_family
from models import LayoutConfig
from parsing import load_people, read_gedcom
from plotting import plot_layout, write_layout
from ranking import RANK_ENGINES
from validation import validate_people

logger = logging.getLogger("famforest")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="famforest",
        description="Lay out person records as a family forest of positioned nodes and edges.",
    )
    parser.add_argument("input", type=Path, help="JSON array of person records, or a .ged file.")
    parser.add_argument("-o", "--output", type=Path, help="Write layout JSON here (default: stdout).")
    parser.add_argument("--dot", type=Path, help="Write the layout as DOT (.dot/.gv) or a neato image.")
    parser.add_argument("--plot", type=Path, help="Save a matplotlib preview image.")
    parser.add_argument("--focus", help="Only lay out the family around this person id.")
    parser.add_argument(
        "--radius", type=int, default=3, help="Relationship hops kept around --focus (default: 3)."
    )
    parser.add_argument(
        "--no-normalize",
        action="store_true",
        help="Keep forest coordinates instead of ordering generations by birth year.",
    )
    parser.add_argument(
        "--rank-engine",
        choices=RANK_ENGINES,
        default="builtin",
        help="How generation ranks are found before normalizing (default: builtin).",
    )
    parser.add_argument("--validate", action="store_true", help="Log data-quality warnings.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser


def read_people(path: Path):
    if path.suffix.lower() == ".ged":
        logger.info("Parsing GEDCOM file: %s", path)
        return read_gedcom(path)
    logger.info("Loading people: %s", path)
    return load_people(path)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        people = read_people(args.input)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read %s: %s", args.input, exc)
        return 1
    logger.info("Found %d people", len(people))

    if args.focus:
        try:
            people = focus_people(people, args.focus, radius=args.radius)
        except ValueError as exc:
            logger.error("%s", exc)
            return 1
        logger.info("Focused on %s: %d people within %d hops", args.focus, len(people), args.radius)

    if args.validate:
        warnings = validate_people(people)
        if warnings:
            logger.warning("Found %d validation warnings:", len(warnings))
            for w in warnings[:10]:  # Show first 10 warnings
                logger.warning("  - %s", w)
            if len(warnings) > 10:
                logger.warning("  ... and %d more", len(warnings) - 10)
        else:
            logger.info("No validation issues found")

    config = replace(LayoutConfig(), normalize=not args.no_normalize, rank_engine=args.rank_engine)
    layout = layout_family(people, config)
    logger.info("Layout has %d nodes and %d edges", len(layout.nodes), len(layout.edges))

    payload = json.dumps(layout.to_dict(), indent=2, ensure_ascii=False)
    if args.output:
        args.output.write_text(payload + "\n", encoding="utf-8")
        logger.info("Layout saved to %s", args.output)
    else:
        sys.stdout.write(payload + "\n")

    if args.dot:
        write_layout(layout, args.dot)
    if args.plot:
        plot_layout(layout, args.plot, config)

    return 0


if __name__ == "__main__":
    sys.exit(main())
