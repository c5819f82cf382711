from .ply_3dgs import Ply3DGSFormat
from .spz import SpzFormat

__all__ = [
    'Ply3DGSFormat',
    'SpzFormat'
]
