"""
Endpoint RSA key (ERRK/ERPK) CRT secret derivation
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0
import logging
import math
from collections import namedtuple

from ..compat import CompatibilityMode, is_sample
from ..errors import PreconditionViolation
from ..octet import FF_LIMB_BYTES, ff_to_octet

logger = logging.getLogger(__name__)

ERPK_EXPONENT = 65537


class RsaSecret(namedtuple('RsaSecret', ['n', 'e', 'p', 'q', 'dp', 'dq', 'c'])):
    """
    CRT form of an ERRK private key plus its ERPK modulus and exponent.
    """
    __slots__ = ()

    def to_octets(self):
        """Fixed-width big-endian octets, sized from the prime length."""
        half = max(1, -(-max(self.p.bit_length(), self.q.bit_length())
                        // (8 * FF_LIMB_BYTES)))
        octets = {'n': ff_to_octet(self.n, 2 * half)}
        for name in ('p', 'q', 'dp', 'dq', 'c'):
            octets[name] = ff_to_octet(getattr(self, name), half)
        return octets


def _check_prime(name, value):
    if value < 3 or value & 1 == 0:
        raise PreconditionViolation(
            "ERRK {} must be an odd integer greater than 2".format(name))


def _crt_exponent(name, prime1, e):
    t = prime1 >> 1
    if t == 0 or math.gcd(e, t) != 1:
        raise PreconditionViolation(
            "e is not invertible modulo ({} - 1) / 2".format(name))
    d = pow(e, -1, t)
    if d & 1 == 0:
        d += t
    return d


def rsa_secret(p, q, e=ERPK_EXPONENT, mode=CompatibilityMode.PRODUCTION,
               factorability=False):
    """
    Derive the CRT private exponents and public modulus from P and Q.

    P and Q must already be final primes congruent to 3 mod 4; no primality
    test is made here and nothing is randomized, so the same P and Q always
    give the same key. ``factorability`` selects the legacy arithmetic that
    decrements P and Q before halving; it only applies in sample
    compatibility mode and is never enabled implicitly.
    """
    _check_prime('P', p)
    _check_prime('Q', q)
    if math.gcd(p, q) != 1:
        raise PreconditionViolation("ERRK P and Q are not coprime")

    p1, q1 = p, q
    if factorability and is_sample(mode):
        p1 -= 1
        q1 -= 1

    n = p * q
    dp = _crt_exponent('P', p1, e)
    dq = _crt_exponent('Q', q1, e)
    c = pow(q, -1, p)

    secret = RsaSecret(n=n, e=e, p=p, q=q, dp=dp, dq=dq, c=c)
    if logger.isEnabledFor(logging.DEBUG):
        for name, value in secret.to_octets().items():
            logger.debug("errk.%s %s", name, value.value.hex())
    return secret
