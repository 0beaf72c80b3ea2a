"""
Curve25519 key pair generation and validation

Used for the Endpoint Secondary Signing/Verification Keys (ESSK/ESVK).
Points are handled x-only on the Montgomery form y^2 = x^3 + A*x^2 + x.
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0

from ..errors import KeyValidationError

P = 2**255 - 19
A = 486662
A24 = (A - 2) // 4
R = 2**252 + 27742317777372353535851937790883648493
GX = 9
MODBYTES = 32

# Montgomery point encoding: 06 || X
POINT_PREFIX = 0x06
PUBLIC_KEY_SIZE = MODBYTES + 1


def _cswap(swap, a, b):
    if swap:
        return b, a
    return a, b


def ladder(u, scalar):
    """
    Montgomery ladder returning the projective (X, Z) of scalar*u.

    Z == 0 is the point at infinity.
    """
    x_1 = u
    x_2, z_2 = 1, 0
    x_3, z_3 = u, 1
    swap = 0

    for t in range(scalar.bit_length() - 1, -1, -1):
        k_t = (scalar >> t) & 1
        swap ^= k_t
        x_2, x_3 = _cswap(swap, x_2, x_3)
        z_2, z_3 = _cswap(swap, z_2, z_3)
        swap = k_t

        a = (x_2 + z_2) % P
        aa = (a * a) % P
        b = (x_2 - z_2) % P
        bb = (b * b) % P
        e = (aa - bb) % P
        c = (x_3 + z_3) % P
        d = (x_3 - z_3) % P
        da = (d * a) % P
        cb = (c * b) % P
        x_3 = ((da + cb) * (da + cb)) % P
        z_3 = (x_1 * (da - cb) * (da - cb)) % P
        x_2 = (aa * bb) % P
        z_2 = (e * (aa + A24 * e)) % P

    x_2, x_3 = _cswap(swap, x_2, x_3)
    z_2, z_3 = _cswap(swap, z_2, z_3)
    return x_2, z_2


def rhs(x):
    return (x * x * x + A * x * x + x) % P


def is_on_curve(x):
    """True when x is the abscissa of a finite point other than (0, 0)."""
    value = rhs(x)
    return value != 0 and pow(value, (P - 1) // 2, P) == 1


def point_to_bytes(x):
    return bytes([POINT_PREFIX]) + x.to_bytes(MODBYTES, byteorder='big')


def point_from_bytes(data):
    data = bytes(data)
    if len(data) != PUBLIC_KEY_SIZE or data[0] != POINT_PREFIX:
        return None
    x = int.from_bytes(data[1:], byteorder='big')
    if x >= P or not is_on_curve(x):
        return None
    return x


def secret_to_scalar(secret):
    return int.from_bytes(bytes(secret), byteorder='big') % R


def key_pair_generate(secret):
    """
    Compute the public key for a caller-supplied secret.

    The secret is used as a big-endian scalar reduced modulo R, without
    RFC 7748 clamping. A zero scalar yields the point at infinity, encoded
    with X = 0, which never validates.
    """
    x, z = ladder(GX, secret_to_scalar(secret))
    if z == 0:
        return point_to_bytes(0)
    return point_to_bytes((x * pow(z, P - 2, P)) % P)


def public_key_validate(public):
    x = point_from_bytes(public)
    if x is None:
        return False
    _, z = ladder(x, R)
    return z == 0


def generate_validated(secret):
    public = key_pair_generate(secret)
    if not public_key_validate(public):
        raise KeyValidationError("ESVK is invalid!")
    return public
