"""
3D Gaussian Splatting SPZ Codec
Copyright (c) 2026 Francesco Fugazzi

This software is released under the MIT License.
For more information about the license, please see the LICENSE file.
"""

import numpy as np
from .utility_functions import debug_print
from ..structures import GaussianCloud

# Layout of the unit cube example: edge length, base splat scale and edge stretch
EXAMPLE_CUBE_SIZE = 10.0
EXAMPLE_BASE_SCALE = 0.1
EXAMPLE_EDGE_SCALE = 1.0
EXAMPLE_ALPHA = 1.0


class Utility:
    @staticmethod
    def describe_splat(cloud, index):
        """Returns a multi-line text dump of a single splat, SH rows included."""
        def fmt(values):
            return ", ".join(f"{float(v):f}" for v in values)

        lines = [
            f"Splat {index}: ",
            f"  position: {fmt(cloud.view('positions')[index])}",
            f"  scale   : {fmt(cloud.view('scales')[index])}",
            f"  rotation: {fmt(cloud.view('rotations')[index])}",
            f"  alpha   : {float(cloud.alphas[index]):f}",
            f"  color   : {fmt(cloud.view('colors')[index])}",
        ]
        if cloud.sh_dim > 0:
            sh = cloud.view('sh')[index]
            for d in range(cloud.sh_dim):
                lines.append(f"  sh {d:2d}   : {fmt(sh[d])}")
        return "\n".join(lines)

    @staticmethod
    def clouds_equal(a, b):
        """Exact comparison of the scalars and all six buffers."""
        if (a.num_points, a.sh_degree, a.antialiased) != (b.num_points, b.sh_degree, b.antialiased):
            return False
        for name in ('positions', 'scales', 'rotations', 'alphas', 'colors', 'sh'):
            if not np.array_equal(getattr(a, name), getattr(b, name)):
                debug_print(f"[DEBUG] Buffer '{name}' differs.")
                return False
        return True

    @staticmethod
    def equals_epsilon(a, b, epsilon):
        """
        Absolute difference below epsilon, or relative difference (scaled by the
        larger magnitude) at most epsilon. Works element-wise on arrays.
        """
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        d = np.abs(a - b)
        return bool(np.all((d < epsilon) | (d <= np.maximum(np.abs(a), np.abs(b)) * epsilon)))

    @staticmethod
    def splats_equal_epsilon(a, index_a, b, index_b, epsilon):
        """
        Compares one splat of each cloud. The rotation w component is compared
        modulo 1, since both q and -q describe the same orientation and version 2
        files only keep w >= 0.
        """
        if a.sh_degree != b.sh_degree:
            return False

        for name in ('positions', 'scales', 'colors'):
            if not Utility.equals_epsilon(a.view(name)[index_a], b.view(name)[index_b], epsilon):
                return False

        ra = a.view('rotations')[index_a]
        rb = b.view('rotations')[index_b]
        if not Utility.equals_epsilon(ra[:3], rb[:3], epsilon):
            return False
        dw = 1.0 - abs(abs(float(ra[3]) - float(rb[3])) - 1.0)
        if not Utility.equals_epsilon(dw, 0.0, epsilon):
            return False

        if not Utility.equals_epsilon(a.alphas[index_a], b.alphas[index_b], epsilon):
            return False

        if a.sh_dim > 0:
            if not Utility.equals_epsilon(a.view('sh')[index_a], b.view('sh')[index_b], epsilon):
                return False
        return True

    @staticmethod
    def create_example_cloud():
        """
        Builds a 20-splat wireframe of a cube: one splat per corner and one per
        edge midpoint, the edge splats stretched along their edge. Colors follow
        the normalized position.
        """
        size = EXAMPLE_CUBE_SIZE
        # (normalized position, relative scale)
        splats = []
        for c in range(8):
            corner = ((c & 1) != 0, (c & 2) != 0, (c & 4) != 0)
            splats.append((tuple(float(v) for v in corner), (1.0, 1.0, 1.0)))
        for a, b in ((0.0, 0.0), (1.0, 0.0), (0.0, 1.0), (1.0, 1.0)):
            splats.append(((0.5, a, b), (size, 1.0, 1.0)))
        for a, b in ((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)):
            splats.append(((a, 0.5, b), (1.0, size, 1.0)))
        for a, b in ((0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0)):
            splats.append(((a, b, 0.5), (1.0, 1.0, size)))

        normalized = np.array([p for p, _ in splats], dtype=np.float32)
        relative_scales = np.array([s for _, s in splats], dtype=np.float32)

        cloud = GaussianCloud(len(splats), 0)
        cloud.view('positions')[:] = normalized * size
        cloud.view('scales')[:] = relative_scales * (EXAMPLE_BASE_SCALE * EXAMPLE_EDGE_SCALE)
        cloud.view('rotations')[:] = (0.0, 0.0, 0.0, 1.0)
        cloud.alphas[:] = EXAMPLE_ALPHA
        cloud.view('colors')[:] = -1.0 + normalized * 2.0

        debug_print(f"[DEBUG] Example cloud created with {cloud.num_points} splats.")
        return cloud
