"""
Goldilocks (Edwards-448) key pair generation and validation

Used for the Endpoint Primary Signing/Verification Keys (EPSK/EPVK).
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0

from ..errors import KeyValidationError

# x^2 + y^2 = 1 + d*x^2*y^2 over GF(2^448 - 2^224 - 1)
P = 2**448 - 2**224 - 1
D = -39081 % P
R = 2**446 - 0x8335dc163bb124b65129c96fde933d8d723a70aadc873d6d54a7bb0d
MODBYTES = 56

# Uncompressed point encoding: 04 || X || Y
POINT_PREFIX = 0x04
PUBLIC_KEY_SIZE = 2 * MODBYTES + 1

IDENTITY = (0, 1)


def _sqrt(u):
    # P = 3 mod 4
    x = pow(u, (P + 1) // 4, P)
    if (x * x) % P != u % P:
        return None
    return x


def _recover_x(y):
    y2 = (y * y) % P
    x2 = ((y2 - 1) * pow((D * y2 - 1) % P, -1, P)) % P
    x = _sqrt(x2)
    if x is None:
        raise ValueError("No curve point with y={}".format(y))
    # The odd root is the base point
    if x & 1 == 0:
        x = P - x
    return x


GY = 19
GX = _recover_x(GY)


def is_on_curve(x, y):
    return (x * x + y * y) % P == (1 + D * x * x * y * y) % P


def add_points(x1, y1, x2, y2):
    """Unified Edwards addition, also used for doubling."""
    x1x2 = (x1 * x2) % P
    y1y2 = (y1 * y2) % P
    dxy = (D * x1x2 * y1y2) % P

    x3 = ((x1 * y2 + y1 * x2) * pow((1 + dxy) % P, -1, P)) % P
    y3 = ((y1y2 - x1x2) * pow((1 - dxy) % P, -1, P)) % P
    return x3, y3


def scalar_mult(x, y, scalar):
    result_x, result_y = IDENTITY
    temp_x, temp_y = x, y

    while scalar > 0:
        if scalar & 1:
            result_x, result_y = add_points(result_x, result_y, temp_x, temp_y)
        temp_x, temp_y = add_points(temp_x, temp_y, temp_x, temp_y)
        scalar >>= 1

    return result_x, result_y


def point_to_bytes(x, y):
    return (bytes([POINT_PREFIX]) + x.to_bytes(MODBYTES, byteorder='big') +
            y.to_bytes(MODBYTES, byteorder='big'))


def point_from_bytes(data):
    """Decode an uncompressed point, or None if it is not on the curve."""
    data = bytes(data)
    if len(data) != PUBLIC_KEY_SIZE or data[0] != POINT_PREFIX:
        return None
    x = int.from_bytes(data[1:1 + MODBYTES], byteorder='big')
    y = int.from_bytes(data[1 + MODBYTES:], byteorder='big')
    if x >= P or y >= P or not is_on_curve(x, y):
        return None
    return x, y


def secret_to_scalar(secret):
    return int.from_bytes(bytes(secret), byteorder='big') % R


def key_pair_generate(secret):
    """
    Compute the public key for a caller-supplied secret.

    The secret octet is read as a big-endian integer and reduced modulo the
    group order; no randomness is drawn and the secret is not modified.
    """
    return point_to_bytes(*scalar_mult(GX, GY, secret_to_scalar(secret)))


def public_key_validate(public):
    """Full validation: on curve, not the identity, and of order R."""
    point = point_from_bytes(public)
    if point is None or point == IDENTITY:
        return False
    return scalar_mult(point[0], point[1], R) == IDENTITY


def generate_validated(secret):
    public = key_pair_generate(secret)
    if not public_key_validate(public):
        raise KeyValidationError("EPVK is invalid!")
    return public
