import gzip
import io
import os
import struct
import zlib
from contextlib import contextmanager
from dataclasses import dataclass

import numpy as np
from .base import BaseFormat
from ..exceptions import (SpzError, SpzIOError, InvalidMagicError, UnsupportedVersionError,
                          InvalidHeaderError, UnexpectedEofError)
from ..processing import quantization
from ..structures import GaussianCloud, RawGaussianCloud, MAX_SH_DEGREE
from ..utils.utility_functions import debug_print, status_print

MAGIC = 0x5053474e  # "NGSP" little-endian
HEADER_FORMAT = '<IIIBBBB'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
SUPPORTED_VERSIONS = (2, 3)
FLAG_ANTIALIASED = 0x1
# Upper bound for a single read from the decompressed stream
READ_CHUNK_SIZE = 1 << 20

_PACKERS = {
    2: quantization.pack_v2,
    3: quantization.pack_v3,
}


@dataclass
class SpzHeader:
    """
    The 16-byte header that precedes the sections in the decompressed stream.

    Attributes:
        version: File format version (2 or 3)
        num_points: Number of Gaussians
        sh_degree: Degree of spherical harmonics (0-3)
        fractional_bits: Number of fractional bits of the 24-bit positions
        flags: Bit field, 0x1 = antialiased
        reserved: Ignored on read, written as 0
    """
    version: int
    num_points: int
    sh_degree: int
    fractional_bits: int
    flags: int = 0
    reserved: int = 0
    magic: int = MAGIC

    @property
    def antialiased(self) -> bool:
        return bool(self.flags & FLAG_ANTIALIASED)

    @property
    def rotation_bytes(self) -> int:
        return quantization.ROTATION_BYTES[self.version]

    @classmethod
    def for_cloud(cls, cloud: GaussianCloud, version: int,
                  fractional_bits: int = quantization.FRACTIONAL_BITS) -> 'SpzHeader':
        flags = FLAG_ANTIALIASED if cloud.antialiased else 0
        return cls(version=version, num_points=cloud.num_points, sh_degree=cloud.sh_degree,
                   fractional_bits=fractional_bits, flags=flags)

    def to_bytes(self) -> bytes:
        return struct.pack(HEADER_FORMAT, self.magic, self.version, self.num_points,
                           self.sh_degree, self.fractional_bits, self.flags, 0)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'SpzHeader':
        """
        Parses and validates a header.

        Raises:
            UnexpectedEofError: If fewer than 16 bytes are given
            InvalidMagicError: If the magic number does not match
            UnsupportedVersionError: If the version is not 2 or 3
            InvalidHeaderError: If the SH degree is larger than 3
        """
        if len(data) < HEADER_SIZE:
            raise UnexpectedEofError('header', HEADER_SIZE, len(data))

        magic, version, num_points, sh_degree, fractional_bits, flags, reserved = struct.unpack(
            HEADER_FORMAT, bytes(data[:HEADER_SIZE]))

        if magic != MAGIC:
            raise InvalidMagicError(magic, MAGIC)
        if version not in SUPPORTED_VERSIONS:
            raise UnsupportedVersionError(version, SUPPORTED_VERSIONS)
        if sh_degree > MAX_SH_DEGREE:
            raise InvalidHeaderError(f"Invalid SH degree: {sh_degree}, must be 0-{MAX_SH_DEGREE}")

        return cls(version=version, num_points=num_points, sh_degree=sh_degree,
                   fractional_bits=fractional_bits, flags=flags, reserved=reserved, magic=magic)

    def __str__(self) -> str:
        return (f"SpzHeader(version={self.version}, points={self.num_points}, "
                f"sh_degree={self.sh_degree}, fractional_bits={self.fractional_bits}, "
                f"flags=0x{self.flags:02X})")


@contextmanager
def _opened(target, mode):
    """
    Yields a binary stream for a path, a bytes-like object (read only) or an
    already open stream. Streams passed in by the caller are left open.
    """
    if isinstance(target, (str, os.PathLike)):
        with open(target, mode) as f:
            yield f
    elif isinstance(target, (bytes, bytearray, memoryview)):
        if 'r' not in mode:
            raise TypeError("Cannot write SPZ data into an immutable bytes object")
        yield io.BytesIO(bytes(target))
    else:
        yield target


def _read_exactly(stream, size, section):
    """
    Reads exactly size bytes. Reads are capped at READ_CHUNK_SIZE, so memory only
    grows with the data actually present, not with the size claimed by the header.
    """
    data = bytearray()
    try:
        while len(data) < size:
            chunk = stream.read(min(size - len(data), READ_CHUNK_SIZE))
            if not chunk:
                break
            data += chunk
    except EOFError as exc:
        # Compressed stream cut off before the end-of-stream marker
        raise UnexpectedEofError(section, size, len(data)) from exc
    if len(data) < size:
        raise UnexpectedEofError(section, size, len(data))
    return bytes(data)


def _read_header(gz):
    return SpzHeader.from_bytes(_read_exactly(gz, HEADER_SIZE, 'header'))


def read_spz_header(source) -> SpzHeader:
    """Reads and validates only the header of an SPZ stream."""
    try:
        with _opened(source, 'rb') as stream, gzip.GzipFile(fileobj=stream, mode='rb') as gz:
            return _read_header(gz)
    except SpzError:
        raise
    except (OSError, zlib.error) as exc:
        raise SpzIOError(f"Failed to read SPZ data: {exc}") from exc


def read_spz(source) -> GaussianCloud:
    """
    Decodes an SPZ stream (version 2 or 3) into a new GaussianCloud.

    Args:
        source: Readable binary stream, bytes-like object, or path.

    Raises:
        InvalidMagicError, UnsupportedVersionError, InvalidHeaderError,
        UnexpectedEofError: Malformed content.
        SpzIOError: The source failed or the gzip stream is corrupt.
    """
    try:
        with _opened(source, 'rb') as stream, gzip.GzipFile(fileobj=stream, mode='rb') as gz:
            header = _read_header(gz)
            debug_print(f"[DEBUG] SPZ Header: Ver={header.version}, N={header.num_points}, "
                        f"SH={header.sh_degree}, Bits={header.fractional_bits}, Flags=0x{header.flags:02X}")

            # Fixed order: positions, alphas, colors, scales, rotations, sh
            sections = {}
            for name, size in RawGaussianCloud.section_sizes(header.num_points, header.sh_degree,
                                                             header.rotation_bytes):
                sections[name] = _read_exactly(gz, size, name)
                debug_print(f"[DEBUG] Read section '{name}' ({size} bytes)")
    except SpzError:
        raise
    except (OSError, zlib.error) as exc:
        raise SpzIOError(f"Failed to read SPZ data: {exc}") from exc

    # Allocated only once every section is complete
    raw = RawGaussianCloud(header.num_points, header.sh_degree, header.fractional_bits,
                           header.antialiased, header.rotation_bytes)
    for name, buffer in raw.sections():
        buffer[:] = np.frombuffer(sections[name], dtype=np.uint8)
    return quantization.unpack(raw)


def write_spz(cloud: GaussianCloud, sink, version: int = 3, compression_level: int = 9) -> None:
    """
    Encodes the cloud as a single gzip member: 16-byte header followed by the
    positions, alphas, colors, scales, rotations and sh sections.

    Args:
        cloud: The cloud to encode.
        sink: Writable binary stream or path.
        version: 2 or 3.
        compression_level: gzip compression level (0-9).

    Raises:
        UnsupportedVersionError: If version is not 2 or 3.
        SpzIOError: If writing to the sink fails.
    """
    if version not in _PACKERS:
        raise UnsupportedVersionError(version, SUPPORTED_VERSIONS)

    header = SpzHeader.for_cloud(cloud, version, quantization.FRACTIONAL_BITS)
    raw = _PACKERS[version](cloud, quantization.FRACTIONAL_BITS)

    try:
        with _opened(sink, 'wb') as stream:
            # Fixed mtime and empty name keep the output reproducible
            with gzip.GzipFile(filename='', fileobj=stream, mode='wb',
                               compresslevel=compression_level, mtime=0) as gz:
                gz.write(header.to_bytes())
                for name, buffer in raw.sections():
                    gz.write(buffer.tobytes())
                    debug_print(f"[DEBUG] Wrote section '{name}' ({buffer.size} bytes)")
            stream.flush()
    except SpzError:
        raise
    except OSError as exc:
        raise SpzIOError(f"Failed to write SPZ data: {exc}") from exc


def write_spz_v2(cloud: GaussianCloud, sink, compression_level: int = 9) -> None:
    write_spz(cloud, sink, version=2, compression_level=compression_level)


def write_spz_v3(cloud: GaussianCloud, sink, compression_level: int = 9) -> None:
    write_spz(cloud, sink, version=3, compression_level=compression_level)


class SpzFormat(BaseFormat):
    extensions = ('.spz',)

    def read(self, path: str, **kwargs) -> GaussianCloud:
        debug_print(f"[DEBUG] Reading .spz file from {path}")
        cloud = read_spz(path)
        debug_print(f"[DEBUG] Loaded {cloud.num_points} points from .spz")
        return cloud

    def write(self, cloud: GaussianCloud, path: str, **kwargs) -> None:
        version = int(kwargs.get('version', 3))
        comp_level = int(kwargs.get('compression_level', 9))
        debug_print(f"[DEBUG] Writing .spz file to {path} (v{version}, lvl={comp_level})")
        write_spz(cloud, path, version=version, compression_level=comp_level)
        status_print(f"SPZ (v{version}, lvl={comp_level}) export completed. {cloud.num_points} points.")
