"""
Per-run IMS derivation context
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0
import logging
from collections import namedtuple

from . import ims as imsmod
from .compat import CompatibilityMode, EpUidVariant
from .keys.rsa import ERPK_EXPONENT, rsa_secret
from .octet import FF_LIMB_BYTES, ff_from_little_endian_octet
from .rng import Csprng

logger = logging.getLogger(__name__)

ImsKeys = namedtuple('ImsKeys', ['ep_uid', 'y2', 'epsk', 'epvk', 'essk',
                                 'esvk', 'errk_p', 'errk_q'])

# Redraw limit for balanced IMS values; the expected count is about 20.
MAX_IMS_ATTEMPTS = 10000


def derive_keys(ims, mode=CompatibilityMode.PRODUCTION,
                uid_variant=EpUidVariant.CORRECTED, errk_bitmask=None):
    """
    Derive every key family for one IMS.

    Y2 is computed once and shared by the EPSK, ESSK and ERRK derivations.
    """
    ep_uid = imsmod.derive_epuid(ims, uid_variant)
    y2 = imsmod.calculate_y2(ims)

    epsk = imsmod.calc_epsk(y2)
    epvk = imsmod.calc_epvk(epsk)

    essk = imsmod.calc_essk(y2, mode)
    esvk = imsmod.calc_esvk(essk)

    errk_p, errk_q = imsmod.calc_errk_pq_bias_odd(y2, mode, errk_bitmask)

    return ImsKeys(ep_uid=ep_uid, y2=y2, epsk=epsk, epvk=epvk, essk=essk,
                   esvk=esvk, errk_p=errk_p, errk_q=errk_q)


def errk_octet_to_int(octet):
    """Little-endian ERRK octet to integer."""
    limbs = max(1, -(-len(octet) // FF_LIMB_BYTES))
    return ff_from_little_endian_octet(octet, limbs)


class ImsContext():
    """
    Everything one derivation run owns: the seeded CSPRNG and the
    compatibility selection, dispatched once for all derivers.

    Use as a context manager, or call ``deinit()`` when done; the CSPRNG
    state is zeroized either way.
    """
    def __init__(self, seed, mode=CompatibilityMode.PRODUCTION,
                 uid_variant=EpUidVariant.CORRECTED, errk_bitmask=None):
        if not isinstance(mode, CompatibilityMode):
            raise TypeError("mode must be a CompatibilityMode")
        if not isinstance(uid_variant, EpUidVariant):
            raise TypeError("uid_variant must be an EpUidVariant")
        self.mode = mode
        self.uid_variant = uid_variant
        self.errk_bitmask = errk_bitmask
        self.rng = Csprng(seed)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.deinit()
        return False

    def deinit(self):
        if not self.rng.cleaned:
            self.rng.clean()

    def derive(self, ims):
        return derive_keys(ims, self.mode, self.uid_variant,
                           self.errk_bitmask)

    def rsa_secret(self, errk_p, errk_q, e=ERPK_EXPONENT,
                   factorability=False):
        """
        RSA CRT secret from finalized P and Q.

        P and Q may be given as integers or as little-endian octets like the
        ones returned by ``derive``. They must already be primes; the
        bias-to-odd candidates only qualify once adjusted upstream.
        """
        p = errk_p if isinstance(errk_p, int) else errk_octet_to_int(errk_p)
        q = errk_q if isinstance(errk_q, int) else errk_octet_to_int(errk_q)
        return rsa_secret(p, q, e, self.mode, factorability)

    def generate_ims(self):
        """
        Draw a random IMS whose first 32 bytes are balanced, i.e. have a
        Hamming weight of exactly IMS_HAMMING_WEIGHT bits.
        """
        for attempt in range(1, MAX_IMS_ATTEMPTS + 1):
            ims = self.rng.generate(imsmod.IMS_SIZE)
            weight = imsmod.hamming_weight(ims[:imsmod.IMS_HAMMING_SIZE])
            if weight == imsmod.IMS_HAMMING_WEIGHT:
                logger.debug("balanced IMS after %d draws", attempt)
                return ims
        raise RuntimeError("No balanced IMS in {} draws".format(
            MAX_IMS_ATTEMPTS))
