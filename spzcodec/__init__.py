"""
3D Gaussian Splatting SPZ Codec
Copyright (c) 2026 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

__version__ = '0.3'

from .exceptions import (SpzError, SpzIOError, SpzFormatError, InvalidMagicError,
                         UnsupportedVersionError, InvalidHeaderError, UnexpectedEofError)
from .structures import GaussianCloud, RawGaussianCloud, create_cloud, sh_dimensions_for_degree
from .processing.quantization import sigmoid, inv_sigmoid, to_byte, quantize_sh
from .processing.coordinates import CoordinateSystem, CoordinateConverter, coordinate_converter, convert_coordinates
from .formats.spz import SpzHeader, read_spz, read_spz_header, write_spz, write_spz_v2, write_spz_v3

__all__ = [
    'GaussianCloud',
    'RawGaussianCloud',
    'create_cloud',
    'sh_dimensions_for_degree',
    'sigmoid',
    'inv_sigmoid',
    'to_byte',
    'quantize_sh',
    'CoordinateSystem',
    'CoordinateConverter',
    'coordinate_converter',
    'convert_coordinates',
    'SpzHeader',
    'read_spz',
    'read_spz_header',
    'write_spz',
    'write_spz_v2',
    'write_spz_v3',
    'SpzError',
    'SpzIOError',
    'SpzFormatError',
    'InvalidMagicError',
    'UnsupportedVersionError',
    'InvalidHeaderError',
    'UnexpectedEofError',
]
