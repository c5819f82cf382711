import numpy as np
from plyfile import PlyData, PlyElement
from .base import BaseFormat
from ..structures import GaussianCloud, sh_dimensions_for_degree
from ..utils.utility_functions import debug_print, status_print

# Number of f_rest_* properties -> SH degree
_REST_COUNT_TO_DEGREE = {3 * sh_dimensions_for_degree(d): d for d in range(4)}


def get_standard_order(sh_degree=3):
    """
    Returns the standard 3DGS attribute names in strict order.
    """
    n_rest = 3 * sh_dimensions_for_degree(sh_degree)
    return [
        'x', 'y', 'z', 'nx', 'ny', 'nz',
        'f_dc_0', 'f_dc_1', 'f_dc_2',
        *[f'f_rest_{i}' for i in range(n_rest)],
        'opacity',
        'scale_0', 'scale_1', 'scale_2',
        'rot_0', 'rot_1', 'rot_2', 'rot_3'
    ]


class Ply3DGSFormat(BaseFormat):
    """
    Standard 3DGS PLY layout. SH rest coefficients are stored channel-planar
    (all red coefficients, then green, then blue), the quaternion as rot_0 = w,
    rot_1..3 = x, y, z.
    """
    extensions = ('.ply',)

    def read(self, path: str, **kwargs) -> GaussianCloud:
        debug_print(f"[DEBUG] Reading 3DGS PLY file from {path}")
        plydata = PlyData.read(path)

        if 'vertex' not in plydata:
            raise ValueError("PLY file does not contain 'vertex' element")

        vertices = plydata['vertex'].data
        source_names = vertices.dtype.names

        required = ['x', 'y', 'z', 'f_dc_0', 'f_dc_1', 'f_dc_2', 'opacity',
                    'scale_0', 'scale_1', 'scale_2', 'rot_0', 'rot_1', 'rot_2', 'rot_3']
        missing = [name for name in required if name not in source_names]
        if missing:
            raise ValueError(f"PLY file is missing 3DGS properties: {', '.join(missing)}")

        n_rest = 0
        while f'f_rest_{n_rest}' in source_names:
            n_rest += 1
        if n_rest not in _REST_COUNT_TO_DEGREE:
            raise ValueError(f"Unsupported number of f_rest properties: {n_rest}")
        sh_degree = _REST_COUNT_TO_DEGREE[n_rest]
        debug_print(f"[DEBUG] Detected SH degree {sh_degree} from {n_rest} f_rest properties.")

        cloud = GaussianCloud(len(vertices), sh_degree)
        cloud.view('positions')[:] = np.column_stack((vertices['x'], vertices['y'], vertices['z']))
        cloud.view('scales')[:] = np.column_stack((vertices['scale_0'], vertices['scale_1'], vertices['scale_2']))
        # PLY stores w first
        cloud.view('rotations')[:] = np.column_stack(
            (vertices['rot_1'], vertices['rot_2'], vertices['rot_3'], vertices['rot_0']))
        cloud.alphas[:] = vertices['opacity']
        cloud.view('colors')[:] = np.column_stack((vertices['f_dc_0'], vertices['f_dc_1'], vertices['f_dc_2']))

        sh_dim = cloud.sh_dim
        if sh_dim > 0:
            sh = cloud.view('sh')
            for j in range(sh_dim):
                sh[:, j, 0] = vertices[f'f_rest_{j}']
                sh[:, j, 1] = vertices[f'f_rest_{j + sh_dim}']
                sh[:, j, 2] = vertices[f'f_rest_{j + 2 * sh_dim}']

        debug_print(f"[DEBUG] Loaded {cloud.num_points} points from PLY")
        return cloud

    def write(self, cloud: GaussianCloud, path: str, **kwargs) -> None:
        debug_print(f"[DEBUG] Writing 3DGS PLY file to {path}")

        order = get_standard_order(cloud.sh_degree)
        output_data = np.zeros(cloud.num_points, dtype=[(name, 'f4') for name in order])

        positions = cloud.view('positions')
        output_data['x'], output_data['y'], output_data['z'] = positions[:, 0], positions[:, 1], positions[:, 2]

        colors = cloud.view('colors')
        for c in range(3):
            output_data[f'f_dc_{c}'] = colors[:, c]

        sh_dim = cloud.sh_dim
        if sh_dim > 0:
            sh = cloud.view('sh')
            for j in range(sh_dim):
                for c in range(3):
                    output_data[f'f_rest_{j + c * sh_dim}'] = sh[:, j, c]

        output_data['opacity'] = cloud.alphas

        scales = cloud.view('scales')
        for c in range(3):
            output_data[f'scale_{c}'] = scales[:, c]

        rotations = cloud.view('rotations')
        output_data['rot_0'] = rotations[:, 3]
        output_data['rot_1'] = rotations[:, 0]
        output_data['rot_2'] = rotations[:, 1]
        output_data['rot_3'] = rotations[:, 2]

        el = PlyElement.describe(output_data, 'vertex')
        PlyData([el], byte_order='<').write(path)
        status_print(f"3DGS PLY write completed. {cloud.num_points} points.")
