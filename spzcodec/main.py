"""
3D Gaussian Splatting SPZ Codec
Copyright (c) 2026 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import argparse
import os
import sys
import numpy as np
from . import __version__
from .converter import Converter, detect_format, get_format_handler
from .exceptions import SpzError
from .formats.spz import read_spz, read_spz_header
from .processing.coordinates import CoordinateSystem
from .utils import config
from .utils.argument_actions import AboutAction, CompressionLevelAction, CoordinateSystemAction
from .utils.utility import Utility
from .utils.utility_functions import debug_print, status_print


def build_parser():
    parser = argparse.ArgumentParser(prog="spzcodec",
                                     description="Read, write and convert SPZ compressed Gaussian splat files.")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug prints.")
    parser.add_argument('--about', action=AboutAction, help='Show copyright and license info')

    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True

    # info
    info = subparsers.add_parser("info", help="Print the header and a per-field summary of an SPZ file.")
    info.add_argument("file", help="Path to the .spz file.")
    info.add_argument("--splat", type=int, metavar="INDEX", help="Also dump a single splat.")

    # convert
    systems = ", ".join(member.name for member in CoordinateSystem)
    convert = subparsers.add_parser("convert", help="Convert between .spz and .ply files.")
    convert.add_argument("--input", "-i", required=True, help="Path to the source file (.spz or .ply).")
    convert.add_argument("--output", "-o", required=True, help="Path to save the converted file (.spz or .ply).")
    convert.add_argument("--version", "-v", type=int, choices=[2, 3], default=3,
                         help="SPZ version to write (default: 3).")
    convert.add_argument("--from", dest="from_system", action=CoordinateSystemAction,
                         default=CoordinateSystem.UNSPECIFIED,
                         help=f"Coordinate system of the source data. One of: {systems}.")
    convert.add_argument("--to", dest="to_system", action=CoordinateSystemAction,
                         default=CoordinateSystem.UNSPECIFIED,
                         help="Coordinate system to write the data in.")
    convert.add_argument("--compression_level", type=int, action=CompressionLevelAction, default=9,
                         help="gzip compression level for SPZ output, 0-9 (default: 9).")

    # example
    example = subparsers.add_parser("example", help="Write the 20-splat unit cube sample.")
    example.add_argument("--output", "-o", required=True, help="Path to save the sample (.spz or .ply).")
    example.add_argument("--version", "-v", type=int, choices=[2, 3], default=3,
                         help="SPZ version to write (default: 3).")

    return parser


def _summarize(name, values):
    if values.size == 0:
        return f"  {name:<10}: (empty)"
    return (f"  {name:<10}: min={float(np.min(values)):.4f} max={float(np.max(values)):.4f} "
            f"mean={float(np.mean(values)):.4f}")


def run_info(args):
    header = read_spz_header(args.file)
    cloud = read_spz(args.file)
    print(f"File: {args.file} ({os.path.getsize(args.file)} bytes)")
    print(f"Version: {header.version}")
    print(f"Number of points: {header.num_points}")
    print(f"SH degree: {header.sh_degree}")
    print(f"Fractional bits: {header.fractional_bits}")
    print(f"Antialiased: {header.antialiased}")
    for name in ('positions', 'scales', 'rotations', 'alphas', 'colors', 'sh'):
        print(_summarize(name, getattr(cloud, name)))

    if args.splat is not None:
        if not 0 <= args.splat < cloud.num_points:
            raise ValueError(f"Splat index {args.splat} out of range [0, {cloud.num_points})")
        print(Utility.describe_splat(cloud, args.splat))


def run_convert(args):
    converter = Converter(args.input, args.output)
    converter.run(from_system=args.from_system, to_system=args.to_system,
                  version=args.version, compression_level=args.compression_level)


def run_example(args):
    target_format = detect_format(args.output)
    if not target_format:
        raise ValueError(f"Could not detect target format of '{args.output}' (expected .spz or .ply)")
    cloud = Utility.create_example_cloud()
    get_format_handler(target_format).write(cloud, args.output, version=args.version)
    status_print(f"Example cloud saved to {args.output}.")


_COMMANDS = {
    'info': run_info,
    'convert': run_convert,
    'example': run_example,
}


def main(argv=None):
    print(f"3D Gaussian Splatting SPZ Codec: {__version__}")

    parser = build_parser()
    args = parser.parse_args(argv)

    config.DEBUG = args.debug
    debug_print(f"[DEBUG] Arguments: {vars(args)}")

    try:
        _COMMANDS[args.command](args)
    except KeyboardInterrupt:
        print("Operation aborted by the user.")
        sys.exit(-1)
    except (SpzError, OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
