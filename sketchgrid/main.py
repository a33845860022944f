"""
SketchGrid: Main Entry Point

Applies drawing-reference filters to an image from the command line:

    sketchgrid photo.jpg reference.png --set shape.notan_bands=4 --enable edge
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .core import ValidationEngine, ValidationSeverity
from .oiio import OiioAdapter
from .processing import FilterPipeline
from .services import ProjectState, Settings
from .utils import get_logger, set_level

logger = logging.getLogger(__name__)

_TRUE = ("true", "yes", "on")
_FALSE = ("false", "no", "off")


def parse_value(text: str) -> Any:
    """Interpret a command-line value as bool, int or float."""
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    try:
        return int(lowered)
    except ValueError:
        pass
    try:
        return float(lowered)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number or boolean: {text!r}")


def parse_assignment(text: str) -> Tuple[str, str, Any]:
    """Split ``filter.key=value`` into its parts."""
    target, sep, value = text.partition("=")
    name, dot, key = target.partition(".")
    if not sep or not dot or not name or not key:
        raise argparse.ArgumentTypeError(f"expected FILTER.KEY=VALUE, got {text!r}")
    return name.strip(), key.strip(), parse_value(value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sketchgrid",
        description="Turn a photo into a drawing reference (tonal, notan, edge and blur filters).",
    )
    parser.add_argument("input", help="Source image (any format OpenImageIO can read)")
    parser.add_argument("output", help="Destination image (8-bit RGBA)")
    parser.add_argument(
        "--set",
        dest="assignments",
        metavar="FILTER.KEY=VALUE",
        action="append",
        type=parse_assignment,
        default=[],
        help="Set a filter property; the filter is enabled. May be repeated.",
    )
    parser.add_argument(
        "--enable",
        metavar="NAME",
        action="append",
        default=[],
        help="Enable a filter with its current settings. May be repeated.",
    )
    parser.add_argument("--settings", help="Path to settings.ini")
    parser.add_argument("--log-level", help="Override the configured log level")
    return parser


def configure_pipeline(
    pipeline: FilterPipeline,
    enable: Sequence[str],
    assignments: Sequence[Tuple[str, str, Any]],
) -> List[str]:
    """Apply command-line filter settings. Returns a list of problems found."""
    problems = []
    properties: Dict[str, Dict[str, Any]] = {name: {} for name in enable}
    for name, key, value in assignments:
        properties.setdefault(name, {})[key] = value

    for name, props in properties.items():
        filter = pipeline.get_filter(name)
        if filter is None:
            problems.append(f"Unknown filter '{name}' (known: {', '.join(pipeline.filter_names())})")
            continue
        pipeline.update_filter_state(name, True, props)
        for key, value in props.items():
            if filter.get_parameter(key) is None:
                problems.append(f"Filter '{name}' has no property '{key}'")
            elif filter.get_property(key) != value:
                problems.append(f"Filter '{name}' rejected {key}={value!r}")
    return problems


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the command line tool. Returns the process exit code."""
    args = build_parser().parse_args(argv)

    settings = Settings(args.settings) if args.settings else Settings()
    get_logger()
    set_level(args.log_level or settings.get_log_level())
    logger.debug("OpenImageIO version: %s", OiioAdapter.get_oiio_version())

    state = ProjectState()
    problems = configure_pipeline(state.pipeline, args.enable, args.assignments)
    for problem in problems:
        logger.error(problem)
    if problems:
        return 1

    issues = ValidationEngine.validate_output_path(args.output)
    if ValidationEngine.has_errors(issues):
        for issue in issues:
            logger.error(str(issue))
        return 1

    raster = OiioAdapter.read_raster(args.input)
    if raster is None:
        logger.error("Cannot read %s", args.input)
        return 1
    state.set_source(raster, args.input)

    ok, errors = state.can_export()
    for issue in issues + ValidationEngine.validate_pipeline(state.pipeline):
        if issue.severity == ValidationSeverity.WARNING:
            logger.warning(str(issue))
    if not ok:
        for error in errors:
            logger.error(error)
        return 1

    try:
        OiioAdapter.write_raster(args.output, state.render_export())
    except RuntimeError as e:
        logger.error(str(e))
        return 1

    settings.set_input_dir(str(Path(args.input).resolve().parent))
    settings.set_output_dir(str(Path(args.output).resolve().parent))
    return 0


if __name__ == "__main__":
    sys.exit(main())
