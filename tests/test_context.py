#!/usr/bin/env python3
"""
Tests for the per-run context, the CSPRNG and end-to-end derivation.
"""

import hashlib
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'scripts'))

from imsgen.compat import CompatibilityMode, EpUidVariant
from imsgen.context import ImsContext, derive_keys
from imsgen.errors import SeedUnavailable
from imsgen.ims import IMS_HAMMING_WEIGHT, IMS_SIZE, hamming_weight
from imsgen.keys import c25519, goldilocks
from imsgen.rng import DEFAULT_PRNG_SEED_LENGTH, Csprng, resolve_seed

SAMPLE = CompatibilityMode.SAMPLE
PRODUCTION = CompatibilityMode.PRODUCTION

SEED = hashlib.sha256(b'Hitchhiker').digest()
ZERO_IMS = bytes(IMS_SIZE)


class TestResolveSeed(unittest.TestCase):
    """Test PRNG seed resolution."""

    def test_seed_string(self):
        self.assertEqual(resolve_seed(seed_string='42'),
                         hashlib.sha256(b'42').digest())

    def test_seed_file_reads_prefix(self):
        data = os.urandom(DEFAULT_PRNG_SEED_LENGTH + 64)
        with tempfile.NamedTemporaryFile(delete=False) as f:
            f.write(data)
        try:
            self.assertEqual(
                resolve_seed(seed_file=f.name),
                hashlib.sha256(data[:DEFAULT_PRNG_SEED_LENGTH]).digest())
        finally:
            os.unlink(f.name)

    def test_no_source(self):
        with self.assertRaises(SeedUnavailable):
            resolve_seed()

    def test_both_sources(self):
        with self.assertRaises(SeedUnavailable):
            resolve_seed(seed_file=__file__, seed_string='x')

    def test_empty_sources(self):
        with self.assertRaises(SeedUnavailable):
            resolve_seed(seed_string='')
        with tempfile.NamedTemporaryFile(delete=False) as f:
            pass
        try:
            with self.assertRaises(SeedUnavailable):
                resolve_seed(seed_file=f.name)
        finally:
            os.unlink(f.name)

    def test_missing_file(self):
        with self.assertRaises(SeedUnavailable):
            resolve_seed(seed_file=os.path.join(tempfile.gettempdir(),
                                                'no-such-imsgen-seed'))


class TestCsprng(unittest.TestCase):
    """Test the seeded generator."""

    def test_deterministic_for_seed(self):
        a = Csprng(SEED)
        b = Csprng(SEED)
        self.assertEqual(a.generate(100), b.generate(100))
        self.assertEqual(a.generate(7), b.generate(7))

    def test_successive_output_differs(self):
        rng = Csprng(SEED)
        self.assertNotEqual(rng.generate(32), rng.generate(32))

    def test_different_seeds(self):
        other = hashlib.sha256(b'other').digest()
        self.assertNotEqual(Csprng(SEED).generate(32),
                            Csprng(other).generate(32))

    def test_bad_seed(self):
        with self.assertRaises(SeedUnavailable):
            Csprng(b'short')
        with self.assertRaises(SeedUnavailable):
            Csprng(None)

    def test_clean_zeroizes(self):
        rng = Csprng(SEED)
        rng.generate(16)
        rng.clean()
        self.assertTrue(rng.cleaned)
        self.assertEqual(rng._key, bytearray(32))
        self.assertEqual(rng._v, bytearray(32))
        with self.assertRaises(SeedUnavailable):
            rng.generate(1)


class TestImsContext(unittest.TestCase):
    """Test the run context."""

    def test_context_manager_deinit(self):
        with ImsContext(SEED) as context:
            context.generate_ims()
        self.assertTrue(context.rng.cleaned)
        context.deinit()

    def test_generate_ims_balanced(self):
        with ImsContext(SEED) as context:
            for _ in range(5):
                ims = context.generate_ims()
                self.assertEqual(len(ims), IMS_SIZE)
                self.assertEqual(hamming_weight(ims[:32]), IMS_HAMMING_WEIGHT)

    def test_generate_ims_reproducible(self):
        with ImsContext(SEED) as a, ImsContext(SEED) as b:
            self.assertEqual(a.generate_ims(), b.generate_ims())

    def test_mode_type_checked(self):
        with self.assertRaises(TypeError):
            ImsContext(SEED, mode=True)
        with self.assertRaises(TypeError):
            ImsContext(SEED, uid_variant='es3')

    def test_derive_uses_context_selection(self):
        with ImsContext(SEED, SAMPLE, EpUidVariant.ES3) as context:
            self.assertEqual(context.derive(ZERO_IMS),
                             derive_keys(ZERO_IMS, SAMPLE, EpUidVariant.ES3))

    def test_rsa_secret_from_octets(self):
        with ImsContext(SEED, SAMPLE) as context:
            secret = context.rsa_secret(10007, 10039)
            self.assertEqual(secret.n, 10007 * 10039)
            keys = context.derive(ZERO_IMS)
            p = int.from_bytes(keys.errk_p.value, 'little')
            self.assertEqual(p % 4, 3)


class TestEndToEnd(unittest.TestCase):
    """End-to-end derivation for a fixed IMS."""

    def test_zero_ims_sample_mode(self):
        keys = derive_keys(ZERO_IMS, SAMPLE, EpUidVariant.ES3)
        for name, size in [('epsk', 55), ('essk', 32),
                           ('errk_p', 32), ('errk_q', 32)]:
            octet = getattr(keys, name)
            self.assertEqual(len(octet), size, name)
            self.assertNotEqual(octet.value, bytes(size), name)

    def test_zero_ims_regression_vector(self):
        # Recomputed from the derivation formulas for IMS = 00 * 35
        def chain(y, b):
            return hashlib.sha256(y + bytes([b]) * 32).digest()
        y2 = hashlib.sha256(b'\x5a' * 32).digest()
        z1 = chain(y2, 0x01)
        z3 = chain(y2, 0x03)
        p = bytearray(chain(z3, 0x01))
        p[0] |= 0x03
        q = bytearray(chain(z3, 0x05))
        q[0] |= 0x03

        keys = derive_keys(ZERO_IMS, SAMPLE)
        self.assertEqual(keys.y2.value, y2)
        self.assertEqual(keys.epsk.value,
                         chain(z1, 0x01) + chain(z1, 0x02)[:23])
        self.assertEqual(keys.essk.value, chain(y2, 0x01))
        self.assertEqual(keys.errk_p.value, bytes(p))
        self.assertEqual(keys.errk_q.value, bytes(q))

    def test_deterministic(self):
        ims = bytes(range(IMS_SIZE))
        for mode in CompatibilityMode:
            self.assertEqual(derive_keys(ims, mode), derive_keys(ims, mode))

    def test_mode_separation_shares_y2(self):
        ims = bytes(range(IMS_SIZE))
        sample = derive_keys(ims, SAMPLE)
        production = derive_keys(ims, PRODUCTION)
        self.assertEqual(sample.y2, production.y2)
        self.assertEqual(sample.epsk, production.epsk)
        self.assertEqual(sample.epvk, production.epvk)
        self.assertNotEqual(sample.essk, production.essk)
        self.assertNotEqual(sample.esvk, production.esvk)
        self.assertNotEqual(sample.errk_p, production.errk_p)
        self.assertNotEqual(sample.errk_q, production.errk_q)

    def test_public_keys_validate(self):
        for ims in (ZERO_IMS, bytes(range(IMS_SIZE))):
            for mode in CompatibilityMode:
                keys = derive_keys(ims, mode)
                self.assertTrue(goldilocks.public_key_validate(keys.epvk))
                self.assertTrue(c25519.public_key_validate(keys.esvk))
                self.assertEqual(len(keys.epvk), goldilocks.PUBLIC_KEY_SIZE)
                self.assertEqual(len(keys.esvk), c25519.PUBLIC_KEY_SIZE)

    def test_ims_not_mutated(self):
        ims = bytearray(range(IMS_SIZE))
        derive_keys(ims, SAMPLE)
        self.assertEqual(bytes(ims), bytes(range(IMS_SIZE)))

class TestKnownAnswers(unittest.TestCase):
    """Fixed key material for IMS = 00 * 35."""

    EP_UID = {
        EpUidVariant.ES3: 'dd8b897c93fbd96f',
        EpUidVariant.CORRECTED: '0498eafd5f31a445',
    }
    Y2 = '60bf07c488aad18fda339df07e4fbc47b4f00be71711936f18d04d352ad01890'
    EPSK = ('f532cf07f0d5e52afa7ae305103a1465bc3f9e9f7ec3aef5a1d9436ac256c320'
            'a7c5801a7f677d7eea6a14b7d63c745a76e9c3b2ef54f0')
    EPVK = ('0481841d5cd681c0f7d3b49f757dff6a2cb8335bd2e3daad32a5ca4b8d3a2a38'
            'ff997035acd6328bcc40e242cdcd08112717d88efcdb1b028758277edcfe35b5'
            '5be081d5221c7f07fcb1cb23daa07ad870a191345a10a47151524fad142f66ca'
            'bdac8db875ffd17aca66860e1e1956f9b3')
    SAMPLE_KEYS = {
        'essk': '659308fce9fe0ce3eff60574b16612752064660de682a71c35dc6d914850ccda',
        'esvk': '062576d7eddde631c4acdcc87d42ed81150e4e44fa539ad15c37aed60e1ab90bbf',
        'errk_p': '1b0e03a515f472d992a547d5e24a5f19331bd394690f662b4e27e1df3e38779f',
        'errk_q': 'a33f3511106244afb5264609558244ab8c97f09a1b0dfc38dcb36b04192199cf',
    }
    PRODUCTION_KEYS = {
        'essk': 'bedf8948f645307ce3c48aa406e9123624d226941f9cc18ae294fd001c7031a9',
        'esvk': '064d4cc4a1633b56fc2d83812d76708cc49a3a9a29af2d5b14cc68b10845481187',
        'errk_p': (
            '1b0e03a515f472d992a547d5e24a5f19331bd394690f662b4e27e1df3e38779f'
            '8ecb33790d777499c745f0749b8f79f04895745fb09969081537ad7bc4a2c4c9'
            '6ff11c0d754b9efa25e11cba054e65718136b57c639149339e9cd526ed145f60'
            'bc80f5eeac71db85345e5b8f90528d38e7b4a75da29b88d95785ef2616e9fb11'),
        'errk_q': (
            'a33f3511106244afb5264609558244ab8c97f09a1b0dfc38dcb36b04192199cf'
            '137f64b2dfb3bba948a03d4851bcc26555e4ec201f9182df0aaeb7ff99a00fb3'
            'd2c61bb4c3eb88df84228d8cf0c4d3b3a90e35679820988ab15b0d3b02d8b33f'
            'cd27994d9c43225f2c87104bd42ea817879d1670607e02b8d499de72871a2b83'),
    }

    def test_ep_uid(self):
        for variant, expected in self.EP_UID.items():
            keys = derive_keys(ZERO_IMS, SAMPLE, variant)
            self.assertEqual(keys.ep_uid.value.hex(), expected, variant)

    def test_shared_keys(self):
        for mode in CompatibilityMode:
            keys = derive_keys(ZERO_IMS, mode)
            self.assertEqual(keys.y2.value.hex(), self.Y2)
            self.assertEqual(keys.epsk.value.hex(), self.EPSK)
            self.assertEqual(keys.epvk.value.hex(), self.EPVK)

    def test_sample_keys(self):
        keys = derive_keys(ZERO_IMS, SAMPLE)
        for name, expected in self.SAMPLE_KEYS.items():
            self.assertEqual(getattr(keys, name).value.hex(), expected, name)

    def test_production_keys(self):
        keys = derive_keys(ZERO_IMS, PRODUCTION)
        for name, expected in self.PRODUCTION_KEYS.items():
            self.assertEqual(getattr(keys, name).value.hex(), expected, name)


if __name__ == '__main__':
    unittest.main()
