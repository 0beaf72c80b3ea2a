"""
IMS key derivation.

Every key family is derived from the 35-byte Identity Management Secret
through a chain of domain separated SHA-256 terms:

    Y2          = sha256(IMS[0:31] xor copy(0x5a, 32))
    Z1, Z2, Z3  = sha256(Y2 || copy(0x01 .. 0x03, 32))

Z1 feeds the EPSK, Z2 the ESSK and Z3 the ERRK P/Q candidates. The EP_UID
is computed from IMS directly. Each function here is self-contained and
only reads its inputs, so separate IMS values can be processed
concurrently.
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0
import logging
import struct

from cryptography.hazmat.primitives import hashes

from .compat import EpUidVariant, is_sample
from .keys import c25519, goldilocks
from .octet import Octet

logger = logging.getLogger(__name__)

SHA256_HASH_DIGEST_SIZE = 32

IMS_SIZE = 35
IMS_HAMMING_SIZE = 32
IMS_HAMMING_WEIGHT = IMS_HAMMING_SIZE * 8 // 2

EP_UID_SIZE = 8
Y2_SIZE = SHA256_HASH_DIGEST_SIZE
EPSK_SIZE = 55
EPVK_SIZE = goldilocks.PUBLIC_KEY_SIZE
ESSK_SIZE = SHA256_HASH_DIGEST_SIZE
ESVK_SIZE = c25519.PUBLIC_KEY_SIZE
ERRK_PQ_SIZE = 128

EP_UID_XOR = 0x3d3d3d3d
EP_UID_EXTEND = 0x01010101
Y2_XOR = 0x5a

ODD_3_MOD_4_BITMASK = 0x03
# Number of low bits forced on the production P and Q candidates
ODD_MOD_PRODUCTION = 2


def odd_mod_bitmask(bits):
    """Mask that forces the low ``bits`` bits of a candidate to one."""
    if not 1 <= bits <= 8:
        raise ValueError("Odd residue mask must cover 1 to 8 bits")
    return (1 << bits) - 1


def _check_ims(ims):
    if len(ims) != IMS_SIZE:
        raise ValueError("IMS must be {} bytes, got {}".format(
            IMS_SIZE, len(ims)))
    return bytes(ims)


def _debug(name, octet):
    logger.debug("%s %s", name, octet.value.hex())


def sha256_concat(hash_y, extend_byte, extend_count):
    """
    Canonical "X = sha256(Y || copy(b, n))".
    """
    if len(hash_y) != SHA256_HASH_DIGEST_SIZE:
        raise ValueError("Hash chain input must be {} bytes".format(
            SHA256_HASH_DIGEST_SIZE))
    scratch = Octet(SHA256_HASH_DIGEST_SIZE + extend_count)
    scratch.jbytes(bytes(hash_y))
    scratch.jbyte(extend_byte, extend_count)
    digest = hashes.Hash(hashes.SHA256())
    digest.update(scratch.value)
    return digest.finalize()


def _epuid(ims, word_bytes):
    # Boot ROM reads IMS as little-endian 32-bit words and feeds the first
    # word_bytes of each (in memory order) to the hash.
    words = struct.unpack('<4I', _check_ims(ims)[:16])

    digest = hashes.Hash(hashes.SHA256())
    for word in words:
        digest.update(struct.pack('<I', word ^ EP_UID_XOR)[:word_bytes])
    y1 = digest.finalize()

    digest = hashes.Hash(hashes.SHA256())
    digest.update(y1)
    for _ in range(8):
        digest.update(struct.pack('<I', EP_UID_EXTEND)[:word_bytes])
    z0 = digest.finalize()

    digest = hashes.Hash(hashes.SHA256())
    digest.update(z0)
    ep_uid = Octet(EP_UID_SIZE, digest.finalize()[:EP_UID_SIZE])
    return ep_uid


def calculate_epuid_es3(ims):
    """
    EP_UID as the ES3 boot ROM computes it.

    Only the low byte of each XORed word (and of the 0x01010101 extension)
    reaches the hash. Devices built with that ROM report this value, so it
    must stay bit-exact.
    """
    ep_uid = _epuid(ims, 1)
    _debug("ep_uid(es3)", ep_uid)
    return ep_uid


def calculate_epuid(ims):
    """EP_UID with whole 32-bit words hashed, for post-ES3 chips."""
    ep_uid = _epuid(ims, 4)
    _debug("ep_uid", ep_uid)
    return ep_uid


def derive_epuid(ims, variant):
    if variant is EpUidVariant.ES3:
        return calculate_epuid_es3(ims)
    if variant is EpUidVariant.CORRECTED:
        return calculate_epuid(ims)
    raise TypeError("Expected an EpUidVariant, got {!r}".format(variant))


def calculate_y2(ims):
    """Y2 = sha256(IMS[0:31] xor copy(0x5a, 32))"""
    scratch = Octet(IMS_HAMMING_SIZE)
    scratch.jbytes(_check_ims(ims)[:IMS_HAMMING_SIZE])
    scratch.xorbyte(Y2_XOR)
    digest = hashes.Hash(hashes.SHA256())
    digest.update(scratch.value)
    y2 = Octet(Y2_SIZE, digest.finalize())
    _debug("y2", y2)
    return y2


def calc_epsk(y2):
    """
    Z1 = sha256(Y2 || copy(0x01, 32))
    EPSK[0:31] = sha256(Z1 || copy(0x01, 32))
    EPSK[32:54] = sha256(Z1 || copy(0x02, 32))[0:22]
    """
    z1 = sha256_concat(bytes(y2), 0x01, 32)

    epsk = Octet(EPSK_SIZE)
    epsk.jbytes(sha256_concat(z1, 0x01, 32))
    epsk.jbytes(sha256_concat(z1, 0x02, 32)[:EPSK_SIZE - SHA256_HASH_DIGEST_SIZE])
    _debug("epsk", epsk)
    return epsk


def calc_epvk(epsk):
    """EPVK for an EPSK; raises KeyValidationError if it does not validate."""
    epvk = Octet(EPVK_SIZE, goldilocks.generate_validated(epsk))
    _debug("epvk", epvk)
    return epvk


def calc_essk(y2, mode):
    """
    Sample compatibility:
        ESSK = sha256(Y2 || copy(0x01, 32))
    Production:
        Z2 = sha256(Y2 || copy(0x02, 32))
        ESSK = sha256(Z2 || copy(0x01, 32))
    """
    if is_sample(mode):
        essk = Octet(ESSK_SIZE, sha256_concat(bytes(y2), 0x01, 32))
    else:
        z2 = sha256_concat(bytes(y2), 0x02, 32)
        essk = Octet(ESSK_SIZE, sha256_concat(z2, 0x01, 32))
    _debug("essk", essk)
    return essk


def calc_esvk(essk):
    """ESVK for an ESSK; raises KeyValidationError if it does not validate."""
    esvk = Octet(ESVK_SIZE, c25519.generate_validated(essk))
    _debug("esvk", esvk)
    return esvk


def calc_errk_pq_bias_odd(y2, mode, bitmask=None):
    """
    ERRK P and Q candidates, up to and including the bias-to-odd step.

        Z3 = sha256(Y2 || copy(0x03, 32))
        ERRK_P = sha256(Z3 || copy(0x01..0x04, 32)) concatenated
        ERRK_Q = sha256(Z3 || copy(0x05..0x08, 32)) concatenated

    The candidates are little-endian: byte 0 is the least significant and
    gets ORed with the odd residue mask. Sample compatibility keeps only the
    first 32 bytes and forces 3 mod 4. Turning candidates into primes is
    left to the caller.
    """
    if is_sample(mode):
        default_mask = ODD_3_MOD_4_BITMASK
        pq_len = SHA256_HASH_DIGEST_SIZE
    else:
        default_mask = odd_mod_bitmask(ODD_MOD_PRODUCTION)
        pq_len = ERRK_PQ_SIZE
    if bitmask is None:
        bitmask = default_mask
    if not bitmask & 0x01 or bitmask > 0xff:
        raise ValueError("Odd residue mask must be a byte with bit 0 set")

    z3 = sha256_concat(bytes(y2), 0x03, 32)

    errk_p = Octet(ERRK_PQ_SIZE)
    for extend_byte in range(0x01, 0x05):
        errk_p.jbytes(sha256_concat(z3, extend_byte, 32))
    errk_p.truncate(pq_len)

    errk_q = Octet(ERRK_PQ_SIZE)
    for extend_byte in range(0x05, 0x09):
        errk_q.jbytes(sha256_concat(z3, extend_byte, 32))
    errk_q.truncate(pq_len)

    errk_p.val[0] |= bitmask
    errk_q.val[0] |= bitmask
    _debug("errk_p", errk_p)
    _debug("errk_q", errk_q)
    return errk_p, errk_q


def hamming_weight(data):
    return sum(bin(b).count('1') for b in bytes(data))
