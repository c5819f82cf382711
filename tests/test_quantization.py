"""Tests for the numeric primitives and the per-field quantization laws."""

import numpy as np
import pytest

from spzcodec import sigmoid, inv_sigmoid, to_byte, quantize_sh, sh_dimensions_for_degree
from spzcodec.processing import quantization as q


def test_sh_dimensions_for_degree():
    """Coefficient count per channel excludes the DC term."""
    assert [sh_dimensions_for_degree(d) for d in range(4)] == [0, 3, 8, 15]


def test_to_byte_rounds_half_up_and_clamps():
    values = np.array([-3.0, 0.0, 0.49, 0.5, 1.5, 2.5, 254.5, 255.0, 400.0])
    assert to_byte(values).tolist() == [0, 0, 0, 1, 2, 3, 255, 255, 255]


def test_sigmoid_inv_sigmoid_clamped():
    """Fully transparent and fully opaque inputs stay finite."""
    assert float(inv_sigmoid(0.0)) == -20.0
    assert float(inv_sigmoid(1.0)) == 20.0
    assert abs(float(sigmoid(0.0)) - 0.5) < 1e-7
    x = np.array([-4.0, -1.0, 0.5, 3.0], dtype=np.float32)
    np.testing.assert_allclose(inv_sigmoid(sigmoid(x)), x, atol=1e-5)


def test_quantize_sh_buckets():
    """Values snap to the center of their bucket."""
    assert int(quantize_sh(0.0, 8)) == 128
    assert int(quantize_sh(0.0, 16)) == 128
    # 0.1 * 128 + 128 = 140.8 -> 141 -> nearest multiple of 8 is 144
    assert int(quantize_sh(0.1, 8)) == 144
    assert int(quantize_sh(0.1, 16)) == 144
    assert int(quantize_sh(1.0, 8)) == 255
    assert int(quantize_sh(-1.0, 16)) == 0


def test_sh_bucket_sizes():
    """Degree-1 coefficients keep 5 bits, higher degrees 4."""
    assert q.sh_bucket_sizes(15).tolist() == [8, 8, 8] + [16] * 12


def test_position_grid_fidelity():
    """Floats on the k / 2^12 grid survive the 24-bit fixed point exactly."""
    k = np.array([0, 1, -1, 4096, -4096, 12345, -(2 ** 23 - 1), 2 ** 23 - 1], dtype=np.int64)
    values = (k / 4096.0).astype(np.float32)
    decoded = q.decode_positions(q.encode_positions(values), q.FRACTIONAL_BITS)
    assert np.array_equal(decoded, values)


def test_position_encoding_layout():
    """Little-endian 24-bit two's complement, three bytes per coordinate."""
    raw = q.encode_positions(np.array([1.0, -1.0, 0.5], dtype=np.float32))
    assert raw.tolist() == [0x00, 0x10, 0x00, 0x00, 0xF0, 0xFF, 0x00, 0x08, 0x00]


def test_position_encoding_wraps_out_of_range():
    """Values past the 24-bit range wrap instead of clamping."""
    raw = q.encode_positions(np.array([2048.0], dtype=np.float32))
    decoded = q.decode_positions(raw, q.FRACTIONAL_BITS)
    assert float(decoded[0]) == -2048.0


def test_scales_idempotent():
    scales = np.linspace(-12.0, 8.0, 301, dtype=np.float32)
    once = q.decode_scales(q.encode_scales(scales))
    twice = q.decode_scales(q.encode_scales(once))
    assert np.array_equal(once, twice)
    assert float(q.decode_scales(q.encode_scales(np.float32(-10.0)))) == -10.0


def test_colors_idempotent():
    colors = np.linspace(-4.0, 4.0, 401, dtype=np.float32)
    once = q.decode_colors(q.encode_colors(colors))
    twice = q.decode_colors(q.encode_colors(once))
    assert np.array_equal(once, twice)


def test_alphas_idempotent():
    alphas = np.linspace(-25.0, 25.0, 501, dtype=np.float32)
    once = q.decode_alphas(q.encode_alphas(alphas))
    twice = q.decode_alphas(q.encode_alphas(once))
    assert np.array_equal(once, twice)


def test_alpha_byte_symmetry():
    """Every byte survives decode followed by encode, the clamped ends included."""
    raw = np.arange(256, dtype=np.uint8)
    decoded = q.decode_alphas(raw)
    assert float(decoded[0]) == -20.0
    assert float(decoded[255]) == 20.0
    assert np.array_equal(q.encode_alphas(decoded), raw)


def test_sh_idempotent():
    rng = np.random.default_rng(3)
    for degree in (1, 2, 3):
        sh_dim = sh_dimensions_for_degree(degree)
        values = rng.uniform(-1.2, 1.2, 10 * sh_dim * 3).astype(np.float32)
        once = q.decode_sh(q.encode_sh(values, 10, degree))
        twice = q.decode_sh(q.encode_sh(once, 10, degree))
        assert np.array_equal(once, twice)


def test_sh_encoding_respects_bucket_per_coefficient():
    raw = q.encode_sh(np.full(15 * 3, 0.3, dtype=np.float32), 1, 3).reshape(15, 3)
    assert np.all(raw[:3] % 8 == 0)
    assert np.all(raw[3:] % 16 == 0)


def _random_unit_quaternions(n, seed):
    rng = np.random.default_rng(seed)
    quats = rng.normal(size=(n, 4))
    return (quats / np.linalg.norm(quats, axis=1, keepdims=True)).astype(np.float32)


def test_rotations_v2_equivalence():
    """Decoded quaternion matches the input up to sign, with w >= 0."""
    quats = _random_unit_quaternions(500, seed=1)
    decoded = q.decode_rotations_v2(q.encode_rotations_v2(quats)).reshape(-1, 4)
    assert np.all(decoded[:, 3] >= 0)
    sign = np.where(quats[:, 3:4] < 0, -1.0, 1.0)
    xyz_error = np.abs(decoded[:, :3] * sign - quats[:, :3])
    assert np.all(xyz_error <= 1.0 / 127.5)


def test_rotations_v2_normalizes_input():
    raw = q.encode_rotations_v2(np.array([0.0, 0.0, 0.0, 5.0], dtype=np.float32))
    assert raw.tolist() == [128, 128, 128]


def test_rotations_v2_idempotent():
    quats = _random_unit_quaternions(500, seed=2)
    quats = quats[np.abs(quats[:, 3]) > 0.3]
    once = q.decode_rotations_v2(q.encode_rotations_v2(quats))
    twice = q.decode_rotations_v2(q.encode_rotations_v2(once))
    assert np.array_equal(once, twice)


def test_rotations_v3_index_bits():
    """Bits 30..31 name the dropped (largest) component."""
    quats = _random_unit_quaternions(200, seed=4)
    raw = q.encode_rotations_v3(quats)
    words = raw.view('<u4')
    assert np.array_equal(words >> 30, np.argmax(np.abs(quats), axis=1))


def test_rotations_v3_layout_for_known_quaternion():
    """Highest retained index sits in the low bits."""
    quat = np.array([0.0, 0.0, 0.6, 0.8], dtype=np.float32)
    word = int(q.encode_rotations_v3(quat).view('<u4')[0])
    assert word >> 30 == 3
    # Components 0, 1, 2 pushed in order: z ends up in bits 0..9
    z_mag = int(np.floor(511.0 / q.SQRT1_2 * 0.6 + 0.5))
    assert word & 0x3FF == z_mag
    assert (word >> 10) & 0x3FF == 0
    assert (word >> 20) & 0x3FF == 0


def test_rotations_v3_accuracy():
    quats = _random_unit_quaternions(500, seed=5)
    decoded = q.decode_rotations_v3(q.encode_rotations_v3(quats)).reshape(-1, 4)
    largest = np.argmax(np.abs(quats), axis=1)
    sign = np.where(quats[np.arange(len(quats)), largest] < 0, -1.0, 1.0)[:, None]
    np.testing.assert_allclose(decoded, quats * sign, atol=3.0 / 511.0)

    # Retained components never exceed the unit norm
    mask = np.ones_like(decoded, dtype=bool)
    mask[np.arange(len(decoded)), largest] = False
    retained = np.where(mask, decoded, 0.0)
    assert np.all(np.sum(retained * retained, axis=1) <= 1.0 + 1e-6)


def test_rotations_v3_idempotent():
    quats = _random_unit_quaternions(500, seed=6)
    ordered = np.sort(np.abs(quats), axis=1)
    # A clear largest component keeps the dropped index stable
    quats = quats[ordered[:, 3] - ordered[:, 2] > 0.05]
    once = q.decode_rotations_v3(q.encode_rotations_v3(quats))
    twice = q.decode_rotations_v3(q.encode_rotations_v3(once))
    assert np.array_equal(once, twice)


@pytest.mark.parametrize("version", [2, 3])
def test_zero_quaternion_encodes_identity(version):
    zero = np.zeros(4, dtype=np.float32)
    if version == 2:
        decoded = q.decode_rotations_v2(q.encode_rotations_v2(zero))
    else:
        decoded = q.decode_rotations_v3(q.encode_rotations_v3(zero))
    np.testing.assert_allclose(decoded, [0.0, 0.0, 0.0, 1.0], atol=1.0 / 127.5)


def test_sh_encoding_saturates_huge_values():
    """Values far outside the grid clamp to the nearest end instead of wrapping."""
    values = np.array([1e8, -1e8, 3e7] * 3, dtype=np.float32)
    assert q.encode_sh(values, 1, 1).tolist() == [255, 0, 255] * 3
    assert int(quantize_sh(np.float32(1e8), 16)) == 255
    assert int(quantize_sh(np.float32(-1e8), 16)) == 0
