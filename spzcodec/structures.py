import numpy as np
from .utils.utility_functions import debug_print


MAX_SH_DEGREE = 3
MAX_NUM_POINTS = 0xFFFFFFFF


def sh_dimensions_for_degree(degree):
    """
    Returns the number of SH coefficients per color channel, excluding the DC term.
    Degree 0: 0, Degree 1: 3, Degree 2: 8, Degree 3: 15
    """
    return (degree + 1) * (degree + 1) - 1


def _validate_counts(num_points, sh_degree):
    if num_points < 0 or num_points > MAX_NUM_POINTS:
        raise ValueError(f"Number of points must be in [0, {MAX_NUM_POINTS}], got {num_points}")
    if sh_degree < 0 or sh_degree > MAX_SH_DEGREE:
        raise ValueError(f"SH degree must be in [0, {MAX_SH_DEGREE}], got {sh_degree}")


class GaussianCloud:
    """
    In-memory Gaussian splat cloud.

    All buffers are flat float32 arrays in interleaved, point-major order:
    positions [x, y, z], scales [x, y, z], rotations [x, y, z, w], alphas [a],
    colors [r, g, b] and sh [coefficient][r, g, b]. The arrays are owned by the
    cloud and handed out as mutable views; they can be written to but not
    replaced or resized.
    """

    # Number of floats per point for each buffer, SH excluded
    COMPONENTS = {
        'positions': 3,
        'scales': 3,
        'rotations': 4,
        'alphas': 1,
        'colors': 3,
    }

    def __init__(self, num_points, sh_degree, antialiased=False):
        num_points = int(num_points)
        sh_degree = int(sh_degree)
        _validate_counts(num_points, sh_degree)

        self._num_points = num_points
        self._sh_degree = sh_degree
        self._antialiased = bool(antialiased)

        sh_dim = sh_dimensions_for_degree(sh_degree)
        self._positions = np.zeros(num_points * 3, dtype=np.float32)
        self._scales = np.zeros(num_points * 3, dtype=np.float32)
        self._rotations = np.zeros(num_points * 4, dtype=np.float32)
        self._alphas = np.zeros(num_points, dtype=np.float32)
        self._colors = np.zeros(num_points * 3, dtype=np.float32)
        self._sh = np.zeros(num_points * sh_dim * 3, dtype=np.float32)

        debug_print(f"[DEBUG] Created Gaussian cloud: N={num_points}, SH={sh_degree}, antialiased={self._antialiased}")

    @property
    def num_points(self):
        return self._num_points

    @property
    def sh_degree(self):
        return self._sh_degree

    @property
    def antialiased(self):
        return self._antialiased

    @property
    def is_antialiased(self):
        return self._antialiased

    @property
    def sh_dim(self):
        return sh_dimensions_for_degree(self._sh_degree)

    @property
    def positions(self):
        return self._positions

    @property
    def scales(self):
        return self._scales

    @property
    def rotations(self):
        return self._rotations

    @property
    def alphas(self):
        return self._alphas

    @property
    def colors(self):
        return self._colors

    @property
    def sh(self):
        return self._sh

    def view(self, name):
        """
        Returns a per-point view of the named buffer that aliases the owned storage.

        positions/scales/colors -> (N, 3), rotations -> (N, 4), alphas -> (N,),
        sh -> (N, sh_dim, 3).
        """
        if name == 'sh':
            return self._sh.reshape(self._num_points, self.sh_dim, 3)
        if name not in self.COMPONENTS:
            raise KeyError(f"Unknown buffer '{name}'")
        buffer = getattr(self, name)
        if name == 'alphas':
            return buffer
        return buffer.reshape(self._num_points, self.COMPONENTS[name])

    def __repr__(self):
        return (f"GaussianCloud(num_points={self._num_points}, sh_degree={self._sh_degree}, "
                f"antialiased={self._antialiased})")


def create_cloud(num_points, sh_degree, antialiased=False):
    """
    Creates a zero-initialized GaussianCloud with the given number of points and SH degree.
    """
    return GaussianCloud(num_points, sh_degree, antialiased=antialiased)


class RawGaussianCloud:
    """
    Quantized byte representation of a cloud, mirroring the section layout on disk.

    rotation_bytes is 3 for version 2 (first three components) and 4 for version 3
    (smallest-three packing).
    """

    def __init__(self, num_points, sh_degree, fractional_bits, antialiased, rotation_bytes):
        if rotation_bytes not in (3, 4):
            raise ValueError(f"Rotation byte width must be 3 or 4, got {rotation_bytes}")

        self.num_points = int(num_points)
        self.sh_degree = int(sh_degree)
        self.fractional_bits = int(fractional_bits)
        self.antialiased = bool(antialiased)
        self.rotation_bytes = rotation_bytes

        sh_dim = sh_dimensions_for_degree(self.sh_degree)
        n = self.num_points
        self.positions = np.zeros(n * 3 * 3, dtype=np.uint8)
        self.alphas = np.zeros(n, dtype=np.uint8)
        self.colors = np.zeros(n * 3, dtype=np.uint8)
        self.scales = np.zeros(n * 3, dtype=np.uint8)
        self.rotations = np.zeros(n * rotation_bytes, dtype=np.uint8)
        self.sh = np.zeros(n * sh_dim * 3, dtype=np.uint8)

    # Order of the sections in the decompressed stream
    SECTION_ORDER = ('positions', 'alphas', 'colors', 'scales', 'rotations', 'sh')

    @classmethod
    def section_sizes(cls, num_points, sh_degree, rotation_bytes):
        """
        Returns (name, byte count) pairs in stream order.
        """
        sh_dim = sh_dimensions_for_degree(sh_degree)
        sizes = {
            'positions': num_points * 3 * 3,
            'alphas': num_points,
            'colors': num_points * 3,
            'scales': num_points * 3,
            'rotations': num_points * rotation_bytes,
            'sh': num_points * sh_dim * 3,
        }
        return [(name, sizes[name]) for name in cls.SECTION_ORDER]

    def sections(self):
        """
        Returns (name, buffer) pairs in stream order.
        """
        return [(name, getattr(self, name)) for name in self.SECTION_ORDER]
