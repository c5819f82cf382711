import numpy as np
from ..structures import GaussianCloud, RawGaussianCloud, sh_dimensions_for_degree
from ..utils.utility_functions import debug_print

# Constants from the reference encoder
FRACTIONAL_BITS = 12
COLOR_SCALE = 0.15
SQRT1_2 = 0.707106781186547524401
SH1_BITS = 5
SH_REST_BITS = 4
INV_SIGMOID_LIMIT = 20.0

# Rotation byte width per file version
ROTATION_BYTES = {2: 3, 3: 4}


# --- Numeric primitives ---

def sigmoid(x):
    x = np.asarray(x, dtype=np.float32)
    with np.errstate(over='ignore'):
        return 1.0 / (1.0 + np.exp(-x))


def inv_sigmoid(x):
    """
    Logit, clamped to [-20, 20] so that fully transparent (0) and fully opaque (1)
    inputs stay finite.
    """
    x = np.asarray(x, dtype=np.float32)
    with np.errstate(divide='ignore', invalid='ignore'):
        y = np.log(x / (1.0 - x))
    return np.clip(y, -INV_SIGMOID_LIMIT, INV_SIGMOID_LIMIT)


def to_byte(x):
    """Round half up and clamp to [0, 255]."""
    x = np.asarray(x, dtype=np.float32)
    return np.clip(np.floor(x + 0.5), 0, 255).astype(np.uint8)


def quantize_sh(x, bucket_size):
    """
    Quantizes SH values to 8 bits, snapped to the center of a bucket of the given width.
    bucket_size may be an array broadcastable against x.
    """
    x = np.asarray(x, dtype=np.float32)
    # Saturate in floating point so huge values cannot overflow the integer cast
    q = np.clip(np.floor(x * 128.0 + 0.5), -256.0, 512.0).astype(np.int32) + 128
    q = (q + bucket_size // 2) // bucket_size * bucket_size
    return np.clip(q, 0, 255).astype(np.uint8)


def sh_bucket_sizes(sh_dim):
    """
    Bucket width per SH coefficient: degree-1 coefficients (j < 3) keep 5 bits,
    all higher degrees keep 4 bits.
    """
    j = np.arange(sh_dim)
    return np.where(j < sh_dimensions_for_degree(1), 1 << (8 - SH1_BITS), 1 << (8 - SH_REST_BITS)).astype(np.int32)


# --- Positions: 24-bit signed fixed point ---

def encode_positions(positions, fractional_bits=FRACTIONAL_BITS):
    scale = float(1 << fractional_bits)
    values = np.asarray(positions, dtype=np.float32).reshape(-1).astype(np.float64)
    # No clamping: values outside the 24-bit range wrap
    fixed = np.floor(values * scale + 0.5).astype(np.int64) & 0xFFFFFF
    raw = np.empty((fixed.size, 3), dtype=np.uint8)
    raw[:, 0] = fixed & 0xFF
    raw[:, 1] = (fixed >> 8) & 0xFF
    raw[:, 2] = (fixed >> 16) & 0xFF
    return raw.reshape(-1)


def decode_positions(raw, fractional_bits):
    b = np.asarray(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
    fixed = b[:, 0] | (b[:, 1] << 8) | (b[:, 2] << 16)
    fixed = np.where((fixed & 0x800000) != 0, fixed - (1 << 24), fixed)
    return (fixed.astype(np.float64) * (1.0 / (1 << fractional_bits))).astype(np.float32)


# --- Scales ---

def encode_scales(scales):
    return to_byte((np.asarray(scales, dtype=np.float32) + 10.0) * 16.0)


def decode_scales(raw):
    return (np.asarray(raw, dtype=np.uint8).astype(np.float32) / 16.0 - 10.0).astype(np.float32)


# --- Rotations ---

def _normalize_quaternions(rotations):
    """
    Normalizes (N, 4) quaternions; zero-length entries become the identity.
    """
    q = np.asarray(rotations, dtype=np.float32).reshape(-1, 4)
    norm = np.sqrt(np.sum(q * q, axis=1, keepdims=True))
    valid = norm > 0
    safe_norm = np.where(valid, norm, 1.0).astype(np.float32)
    identity = np.array([0.0, 0.0, 0.0, 1.0], dtype=np.float32)
    return np.where(valid, q / safe_norm, identity).astype(np.float32)


def encode_rotations_v2(rotations):
    """Stores x, y, z of the normalized quaternion with w made nonnegative."""
    q = _normalize_quaternions(rotations)
    sign = np.where(q[:, 3:4] < 0, -1.0, 1.0).astype(np.float32)
    xyz = q[:, :3] * sign
    return to_byte(xyz * 127.5 + 127.5).reshape(-1)


def decode_rotations_v2(raw):
    xyz = np.asarray(raw, dtype=np.uint8).reshape(-1, 3).astype(np.float32) / 127.5 - 1.0
    s2 = np.sum(xyz * xyz, axis=1)
    w = np.sqrt(np.maximum(0.0, 1.0 - s2))
    return np.column_stack((xyz, w)).astype(np.float32).reshape(-1)


def encode_rotations_v3(rotations):
    """
    Smallest-three packing into one little-endian uint32 per quaternion.

    Bits 30..31 hold the index of the largest component, which is dropped. The
    remaining components are pushed in ascending index order, each as a 9-bit
    magnitude plus a sign bit, so the highest retained index ends up in bits 0..9.
    """
    q = _normalize_quaternions(rotations)
    n = q.shape[0]
    largest = np.argmax(np.abs(q), axis=1)
    negate = q[np.arange(n), largest] < 0

    # Flip the whole quaternion when the largest component is negative
    negbits = np.not_equal(q < 0, negate[:, None]).astype(np.uint32)
    mags = np.floor((511.0 / SQRT1_2) * np.abs(q) + 0.5)
    mags = np.minimum(mags, 511).astype(np.uint32)

    packed = largest.astype(np.uint32)
    for i in range(4):
        keep = largest != i
        field = (negbits[:, i] << np.uint32(9)) | mags[:, i]
        packed = np.where(keep, (packed << np.uint32(10)) | field, packed).astype(np.uint32)
    return packed.astype('<u4').view(np.uint8).reshape(-1)


def decode_rotations_v3(raw):
    words = np.frombuffer(np.ascontiguousarray(raw, dtype=np.uint8).tobytes(), dtype='<u4').astype(np.uint32)
    n = words.shape[0]
    largest = (words >> np.uint32(30)).astype(np.int64)

    q = np.zeros((n, 4), dtype=np.float32)
    sum_squares = np.zeros(n, dtype=np.float32)
    comp = words.copy()
    for j in (3, 2, 1, 0):
        keep = largest != j
        magnitude = (comp & np.uint32(0x1FF)).astype(np.float32)
        negative = ((comp >> np.uint32(9)) & np.uint32(1)) == 1
        value = (SQRT1_2 * magnitude / 511.0).astype(np.float32)
        value = np.where(negative, -value, value)
        q[:, j] = np.where(keep, value, q[:, j])
        sum_squares += np.where(keep, value * value, 0.0).astype(np.float32)
        comp = np.where(keep, comp >> np.uint32(10), comp).astype(np.uint32)

    q[np.arange(n), largest] = np.sqrt(np.maximum(0.0, 1.0 - sum_squares))
    return q.reshape(-1)


# --- Alphas ---

def encode_alphas(alphas):
    return to_byte(sigmoid(alphas) * 255.0)


def decode_alphas(raw):
    return inv_sigmoid(np.asarray(raw, dtype=np.uint8).astype(np.float32) / 255.0).astype(np.float32)


# --- Colors ---

def encode_colors(colors):
    c = np.asarray(colors, dtype=np.float32)
    return to_byte(c * (COLOR_SCALE * 255.0) + (0.5 * 255.0))


def decode_colors(raw):
    b = np.asarray(raw, dtype=np.uint8).astype(np.float32)
    return ((b / 255.0 - 0.5) / COLOR_SCALE).astype(np.float32)


# --- Spherical harmonics ---

def encode_sh(sh, num_points, sh_degree):
    sh_dim = sh_dimensions_for_degree(sh_degree)
    if num_points == 0 or sh_dim == 0:
        return np.zeros(0, dtype=np.uint8)
    values = np.asarray(sh, dtype=np.float32).reshape(num_points, sh_dim, 3)
    buckets = sh_bucket_sizes(sh_dim).reshape(1, sh_dim, 1)
    return quantize_sh(values, buckets).reshape(-1)


def decode_sh(raw):
    b = np.asarray(raw, dtype=np.uint8).astype(np.float32)
    return ((b - 128.0) / 128.0).astype(np.float32)


# --- Whole clouds ---

_ROTATION_ENCODERS = {3: encode_rotations_v2, 4: encode_rotations_v3}
_ROTATION_DECODERS = {3: decode_rotations_v2, 4: decode_rotations_v3}


def _pack(cloud, fractional_bits, rotation_bytes):
    raw = RawGaussianCloud(cloud.num_points, cloud.sh_degree, fractional_bits,
                           cloud.antialiased, rotation_bytes)
    raw.positions[:] = encode_positions(cloud.positions, fractional_bits)
    raw.scales[:] = encode_scales(cloud.scales)
    raw.rotations[:] = _ROTATION_ENCODERS[rotation_bytes](cloud.rotations)
    raw.alphas[:] = encode_alphas(cloud.alphas)
    raw.colors[:] = encode_colors(cloud.colors)
    raw.sh[:] = encode_sh(cloud.sh, cloud.num_points, cloud.sh_degree)
    return raw


def pack_v2(cloud, fractional_bits=FRACTIONAL_BITS):
    debug_print(f"[DEBUG] Packing {cloud.num_points} points for version 2")
    return _pack(cloud, fractional_bits, ROTATION_BYTES[2])


def pack_v3(cloud, fractional_bits=FRACTIONAL_BITS):
    debug_print(f"[DEBUG] Packing {cloud.num_points} points for version 3")
    return _pack(cloud, fractional_bits, ROTATION_BYTES[3])


def unpack(raw):
    """
    Converts a RawGaussianCloud back into a new GaussianCloud, choosing the
    rotation decoder from the raw cloud's rotation byte width.
    """
    debug_print(f"[DEBUG] Unpacking {raw.num_points} points (rotation bytes: {raw.rotation_bytes})")
    cloud = GaussianCloud(raw.num_points, raw.sh_degree, antialiased=raw.antialiased)
    cloud.positions[:] = decode_positions(raw.positions, raw.fractional_bits)
    cloud.scales[:] = decode_scales(raw.scales)
    cloud.rotations[:] = _ROTATION_DECODERS[raw.rotation_bytes](raw.rotations)
    cloud.alphas[:] = decode_alphas(raw.alphas)
    cloud.colors[:] = decode_colors(raw.colors)
    cloud.sh[:] = decode_sh(raw.sh)
    return cloud
