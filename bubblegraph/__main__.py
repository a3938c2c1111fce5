import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from bubblegraph import (
    Diagram,
    DiagramFormatError,
    DiagramSettings,
    get_default_settings,
    read_diagram,
    write_diagram,
)

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def _load(args: argparse.Namespace, settings: DiagramSettings) -> Diagram:
    if args.load_json:
        return read_diagram(args.load_json, settings=settings, seed=args.seed)
    text = ""
    if args.path:
        logger.info("Reading space list from %s", args.path)
        text = Path(args.path).read_text(encoding="utf-8")
    diagram = Diagram(settings, seed=args.seed)
    diagram.generate_from_list(text)
    return diagram


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Lay out bubble adjacency diagrams")
    parser.add_argument(
        "path",
        nargs="?",
        help="Space list, one 'name, area' per line (default: built-in sample)",
    )
    parser.add_argument("--load-json", help="Load a saved diagram instead of a space list")
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=123,
        help="Random seed for jiggle and placement (default: 123)",
    )
    parser.add_argument(
        "--ticks",
        type=int,
        default=3000,
        help="Maximum simulation ticks (default: 3000)",
    )
    parser.add_argument("--buffer", type=float, help="Gap kept between circles in px")
    parser.add_argument("--rotation", type=float, help="Rotation sensitivity 0..100")
    parser.add_argument(
        "--no-physics",
        action="store_true",
        help="Skip the simulation and only resolve overlaps",
    )
    parser.add_argument(
        "--detangle",
        action="store_true",
        help="Start with a detangle pulse",
    )
    parser.add_argument(
        "--expected",
        help="File with expected necessary pairs ('A - B' per line)",
    )
    parser.add_argument(
        "--auto-connect",
        action="store_true",
        help="Link every missing expected pair before laying out",
    )
    parser.add_argument(
        "--tolerance",
        type=float,
        default=1.8,
        help="Long-link tolerance factor (default: 1.8)",
    )
    parser.add_argument(
        "--json-output",
        help="Write the laid out diagram as JSON to the given path",
    )
    args = parser.parse_args(argv)

    _configure_logging(args.log_level)

    settings = get_default_settings()
    if args.buffer is not None:
        settings.buffer = max(0.0, args.buffer)
    if args.rotation is not None:
        settings.rotation_sensitivity = min(100.0, max(0.0, args.rotation))
    settings.long_link_tolerance = args.tolerance

    try:
        diagram = _load(args, settings)
    except (OSError, DiagramFormatError) as exc:
        logger.error("Could not load diagram: %s", exc)
        raise SystemExit(1)

    expected_text = ""
    if args.expected:
        try:
            expected_text = Path(args.expected).read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Could not read expected pairs: %s", exc)
            raise SystemExit(1)
        if args.auto_connect:
            diagram.auto_connect(diagram.compute_conflicts(expected_text))

    if args.no_physics:
        diagram.set_physics_enabled(False)
        corrections = diagram.resolve_until_clear()
        logger.info("Static resolve made %d correction(s)", corrections)
    else:
        diagram.set_physics_enabled(True)
        if args.detangle:
            diagram.trigger_detangle()
        diagram.run_until_settled(args.ticks)

    report = diagram.compute_conflicts(expected_text, args.tolerance)
    overlaps = diagram.overlaps()

    print(f"Nodes: {len(diagram.nodes)}  Links: {len(diagram.links)}")
    print("Positions:")
    for node in diagram.nodes:
        lock = " (locked)" if node.locked else ""
        print(f"  {node.name}: ({node.x:.2f}, {node.y:.2f}) r={diagram.radius(node.id):.1f}{lock}")
    print(f"Overlapping pairs: {len(overlaps)}")
    print("Missing necessary pairs:")
    if report.missing_pairs:
        for pair in report.missing_pairs:
            print(f"  - {pair.names[0]} - {pair.names[1]}")
    else:
        print("  (none)")
    print("Overlong links:")
    if report.overlong_link_ids:
        for link_id in report.overlong_link_ids:
            print(f"  - {link_id}")
    else:
        print("  (none)")

    if args.json_output:
        path = write_diagram(diagram, args.json_output)
        print(f"Diagram written to {path}")

    diagram.close()


if __name__ == "__main__":
    main(sys.argv[1:])
