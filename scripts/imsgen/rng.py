"""
PRNG seed resolution and the seeded CSPRNG
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0
import logging

from cryptography.hazmat.primitives import hashes, hmac

from .errors import SeedUnavailable

logger = logging.getLogger(__name__)

# The maximum number of bytes to read from a prng_seed_file
DEFAULT_PRNG_SEED_LENGTH = 128

PRNG_SEED_SIZE = 32


def hash_it(data):
    digest = hashes.Hash(hashes.SHA256())
    digest.update(bytes(data))
    return digest.finalize()


def resolve_seed(seed_file=None, seed_string=None):
    """
    Turn exactly one seed source into a 32-byte PRNG seed.

    A seed file contributes at most its first DEFAULT_PRNG_SEED_LENGTH
    bytes (e.g. /dev/urandom); a seed string is used in full. Either way
    the raw material is hashed with SHA-256.
    """
    if seed_file is not None and seed_string is not None:
        raise SeedUnavailable("Use only one of a PRNG seed file or string")
    if seed_file is not None:
        try:
            with open(seed_file, 'rb') as f:
                raw = f.read(DEFAULT_PRNG_SEED_LENGTH)
        except OSError as e:
            raise SeedUnavailable(
                "Unable to open '{}' ({})".format(seed_file, e)) from e
    elif seed_string is not None:
        raw = seed_string.encode('utf-8') \
            if isinstance(seed_string, str) else bytes(seed_string)
    else:
        raise SeedUnavailable("No PRNG seed file or string given")

    if len(raw) < 1:
        raise SeedUnavailable("PRNG seed source is empty")
    return hash_it(raw)


class Csprng():
    """
    HMAC-DRBG (SHA-256) seeded once from a resolved seed.

    ``clean()`` zeroizes the internal state; the generator refuses to
    produce output afterwards.
    """
    def __init__(self, seed):
        if seed is None or len(seed) != PRNG_SEED_SIZE:
            raise SeedUnavailable(
                "PRNG seed must be {} bytes".format(PRNG_SEED_SIZE))
        self._key = bytearray(b'\x00' * 32)
        self._v = bytearray(b'\x01' * 32)
        self._cleaned = False
        self._update(bytes(seed))

    def _hmac(self, data):
        h = hmac.HMAC(bytes(self._key), hashes.SHA256())
        h.update(data)
        return h.finalize()

    def _update(self, provided=b''):
        self._key[:] = self._hmac(bytes(self._v) + b'\x00' + provided)
        self._v[:] = self._hmac(bytes(self._v))
        if provided:
            self._key[:] = self._hmac(bytes(self._v) + b'\x01' + provided)
            self._v[:] = self._hmac(bytes(self._v))

    @property
    def cleaned(self):
        return self._cleaned

    def generate(self, length):
        if self._cleaned:
            raise SeedUnavailable("CSPRNG has been cleaned")
        out = bytearray()
        while len(out) < length:
            self._v[:] = self._hmac(bytes(self._v))
            out += self._v
        self._update()
        return bytes(out[:length])

    def clean(self):
        for buf in (self._key, self._v):
            for i in range(len(buf)):
                buf[i] = 0
        self._cleaned = True
        logger.debug("CSPRNG cleaned")
