"""
3D Gaussian Splatting SPZ Codec
Copyright (c) 2026 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

# Toggled by the command line '--debug' flag.
DEBUG = False
