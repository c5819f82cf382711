"""
3D Gaussian Splatting SPZ Codec
Copyright (c) 2026 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import argparse
from ..processing.coordinates import CoordinateSystem


class CoordinateSystemAction(argparse.Action):
    def __call__(self, parser, args, values, option_string=None):
        try:
            values = CoordinateSystem.parse(values)
        except ValueError as e:
            parser.error(f"{option_string}: {e}")
        setattr(args, self.dest, values)


class CompressionLevelAction(argparse.Action):
    def __call__(self, parser, args, values, option_string=None):
        if not 0 <= values <= 9:
            parser.error(f"{option_string} must be between 0 and 9, got {values}.")
        setattr(args, self.dest, values)


class AboutAction(argparse.Action):
    def __init__(self, option_strings, dest, nargs=0, **kwargs):
        super(AboutAction, self).__init__(option_strings, dest, nargs=0, **kwargs)

    def __call__(self, parser, namespace, values, option_string=None):
        copyright_info = """
        3D Gaussian Splatting SPZ Codec
        Copyright (c) 2026 Francesco Fugazzi

        This software is released under the MIT License.
        For more information about the license, please see the LICENSE file.
        """
        print(copyright_info)
        parser.exit()  # Exit after displaying the information.
