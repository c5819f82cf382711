from enum import IntEnum

import numpy as np
from ..utils.utility_functions import debug_print


class CoordinateSystem(IntEnum):
    """
    Axis conventions, named by the direction of +X (Left/Right), +Y (Down/Up)
    and +Z (Back/Front).
    """
    UNSPECIFIED = 0
    LDB = 1
    RDB = 2
    LUB = 3
    RUB = 4  # Three.js
    LDF = 5
    RDF = 6  # PLY
    LUF = 7  # GLB
    RUF = 8  # Unity

    @classmethod
    def parse(cls, value):
        """Accepts a member, its integer code or its name (case-insensitive). None is UNSPECIFIED."""
        if value is None:
            return cls.UNSPECIFIED
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                valid = ", ".join(member.name for member in cls)
                raise ValueError(f"Unknown coordinate system '{value}'. Supported: {valid}") from None
        return cls(int(value))

    def axis_bits(self):
        """Bit 0: X is R, bit 1: Y is U, bit 2: Z is F. None for UNSPECIFIED."""
        if self is CoordinateSystem.UNSPECIFIED:
            return None
        return int(self) - 1


# Sign of each SH coefficient (up to degree 3) under axis reflections, indexed by
# the coefficient position. Entries are expressions over the per-axis signs.
_SH_FLIP_TERMS = ('y', 'z', 'x', 'xy', 'yz', '', 'xz', '', 'y', 'xyz', 'y', 'z', 'x', 'z', 'x')


class CoordinateConverter:
    def __init__(self, flip_p, flip_q, flip_sh):
        self.flip_p = np.asarray(flip_p, dtype=np.float32)
        self.flip_q = np.asarray(flip_q, dtype=np.float32)
        self.flip_sh = np.asarray(flip_sh, dtype=np.float32)

    @property
    def is_identity(self):
        return bool(np.all(self.flip_p == 1.0))

    def __repr__(self):
        return f"CoordinateConverter(flip_p={self.flip_p.tolist()}, flip_q={self.flip_q.tolist()})"


def axes_match(a, b):
    a = CoordinateSystem.parse(a).axis_bits()
    b = CoordinateSystem.parse(b).axis_bits()
    if a is None or b is None:
        return (True, True, True)
    return tuple(((a >> k) & 1) == ((b >> k) & 1) for k in range(3))


def coordinate_converter(from_system, to_system):
    match = axes_match(from_system, to_system)
    x, y, z = (1.0 if m else -1.0 for m in match)
    signs = {'x': x, 'y': y, 'z': z}

    flip_sh = []
    for term in _SH_FLIP_TERMS:
        value = 1.0
        for axis in term:
            value *= signs[axis]
        flip_sh.append(value)

    return CoordinateConverter((x, y, z), (y * z, x * z, x * y), flip_sh)


def convert_coordinates(cloud, from_system, to_system):
    """
    Converts the cloud between coordinate systems in place. Only signs are flipped;
    axes are never permuted, so applying the inverse conversion restores the input.
    """
    converter = coordinate_converter(from_system, to_system)
    debug_print(f"[DEBUG] Converting coordinates {CoordinateSystem.parse(from_system).name} -> "
                f"{CoordinateSystem.parse(to_system).name}: {converter}")
    if converter.is_identity or cloud.num_points == 0:
        return cloud

    cloud.view('positions')[:] *= converter.flip_p
    cloud.view('rotations')[:, :3] *= converter.flip_q

    sh_dim = cloud.sh_dim
    if sh_dim > 0:
        cloud.view('sh')[:] *= converter.flip_sh[:sh_dim].reshape(1, sh_dim, 1)
    return cloud
