"""Shared test fixtures and utilities for SPZ codec tests."""

import gzip
import io

import numpy as np
import pytest

from spzcodec import create_cloud, read_spz, write_spz


def make_random_cloud(num_points, sh_degree, seed=0, antialiased=False):
    """Create a cloud with plausible random values in every buffer."""
    rng = np.random.default_rng(seed)
    cloud = create_cloud(num_points, sh_degree, antialiased=antialiased)
    cloud.positions[:] = rng.uniform(-50.0, 50.0, cloud.positions.size)
    cloud.scales[:] = rng.uniform(-8.0, 2.0, cloud.scales.size)
    rotations = rng.normal(size=(num_points, 4))
    rotations /= np.linalg.norm(rotations, axis=1, keepdims=True)
    cloud.rotations[:] = rotations.reshape(-1)
    cloud.alphas[:] = rng.uniform(-6.0, 6.0, num_points)
    cloud.colors[:] = rng.uniform(-2.0, 2.0, cloud.colors.size)
    cloud.sh[:] = rng.uniform(-0.9, 0.9, cloud.sh.size)
    return cloud


def encode_to_bytes(cloud, version=3, compression_level=9):
    """Encode a cloud into an in-memory SPZ file."""
    sink = io.BytesIO()
    write_spz(cloud, sink, version=version, compression_level=compression_level)
    return sink.getvalue()


def decompressed_payload(data):
    """Return the raw header and sections of an SPZ file."""
    return gzip.decompress(data)


@pytest.fixture
def random_cloud():
    """Factory fixture for random clouds: random_cloud(num_points, sh_degree, seed=0)."""
    return make_random_cloud


@pytest.fixture
def spz_roundtrip():
    """Encode a cloud with the given version and decode it back."""
    def roundtrip(cloud, version=3):
        return read_spz(io.BytesIO(encode_to_bytes(cloud, version)))
    return roundtrip


@pytest.fixture
def single_splat_cloud():
    """One splat at (1, 2, 3) with the identity rotation and no SH."""
    cloud = create_cloud(1, 0)
    cloud.positions[:] = (1.0, 2.0, 3.0)
    cloud.rotations[:] = (0.0, 0.0, 0.0, 1.0)
    return cloud
