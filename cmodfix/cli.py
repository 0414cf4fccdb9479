# cmodfix/cli.py
"""
Command line front end.

    cmodfix [options] [input [output]]

Reads standard input and writes standard output when file names are
omitted. Exits with 0 on success and 1 on any usage, I/O, format or
generation error.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import List, Optional

from cmodfix.errors import MeshError, ModelFormatError, StripifyError
from cmodfix.formats import get_codec, load_model
from cmodfix.mesh.types import Model
from cmodfix.pipeline import fix_model
from cmodfix.processing.strips import DEFAULT_CACHE_SIZE
from cmodfix.settings import DEFAULT_SMOOTH_ANGLE, FixSettings

logger = logging.getLogger("cmodfix")

EXIT_OK = 0
EXIT_FAILURE = 1


class _Parser(argparse.ArgumentParser):
    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(EXIT_FAILURE, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _Parser(
        prog="cmodfix",
        description="Perform various adjustments to a mesh model file",
    )
    parser.add_argument("input", nargs="?", help="Input model (default: stdin)")
    parser.add_argument(
        "output", nargs="?", help="Output model (default: stdout)"
    )
    parser.add_argument(
        "-b",
        "--binary",
        dest="binary",
        action="store_true",
        help="Write a binary model file",
    )
    parser.add_argument(
        "-a",
        "--ascii",
        dest="binary",
        action="store_false",
        help="Write a text (OBJ) model file (default)",
    )
    parser.add_argument(
        "-u",
        "--uniquify",
        action="store_true",
        help="Eliminate duplicate vertices",
    )
    parser.add_argument(
        "-n", "--normals", action="store_true", help="Generate normals"
    )
    parser.add_argument(
        "-t", "--tangents", action="store_true", help="Generate tangents"
    )
    parser.add_argument(
        "-s",
        "--smooth",
        type=float,
        default=DEFAULT_SMOOTH_ANGLE,
        metavar="ANGLE",
        help="Smoothing angle in degrees for normal generation "
        f"(default: {DEFAULT_SMOOTH_ANGLE:g})",
    )
    parser.add_argument(
        "-w",
        "--weld",
        action="store_true",
        help="Join identical vertices before normal generation",
    )
    parser.add_argument(
        "-m",
        "--merge",
        action="store_true",
        help="Merge submeshes to improve rendering performance",
    )
    parser.add_argument(
        "-o",
        "--optimize",
        action="store_true",
        help="Optimize by converting triangle lists to strips",
    )
    parser.add_argument(
        "--cache-size",
        type=int,
        default=DEFAULT_CACHE_SIZE,
        help="Vertex cache size for strip optimization "
        f"(default: {DEFAULT_CACHE_SIZE})",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Log progress to stderr"
    )
    return parser


def settings_from_args(args: argparse.Namespace) -> FixSettings:
    return FixSettings(
        binary_output=args.binary,
        uniquify=args.uniquify,
        generate_normals=args.normals,
        generate_tangents=args.tangents,
        smooth_angle=args.smooth,
        weld=args.weld,
        merge=args.merge,
        stripify=args.optimize,
        vertex_cache_size=args.cache_size,
    )


def _read_model(path: Optional[str]) -> Model:
    if path is None:
        return load_model(sys.stdin.buffer)
    with open(path, "rb") as f:
        return load_model(f)


def _write_model(model: Model, path: Optional[str], binary: bool) -> None:
    # A failed encode must not truncate the target.
    data = get_codec(binary).encode(model)
    if path is None:
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return
    with open(path, "wb") as f:
        f.write(data)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    settings = settings_from_args(args)
    source = args.input or "standard input"

    try:
        model = _read_model(args.input)
    except OSError as e:
        print(f"Error opening {source}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except ModelFormatError as e:
        print(f"Error loading {source}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        model = fix_model(model, settings)
    except MeshError as e:
        print(f"Error processing model: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except StripifyError as e:
        print(f"Error optimizing model: {e}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        _write_model(model, args.output, settings.binary_output)
    except OSError as e:
        target = args.output or "standard output"
        print(f"Error opening output file {target}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except ModelFormatError as e:
        print(f"Error saving model: {e}", file=sys.stderr)
        return EXIT_FAILURE

    logger.info(
        "Wrote %d meshes to %s",
        len(model.meshes),
        args.output or "standard output",
    )
    return EXIT_OK
