"""
IMS derivation errors
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0


class ImsError(Exception):
    pass


class SeedUnavailable(ImsError):
    """No usable PRNG seed could be resolved, or the generator was cleaned."""
    pass


class KeyValidationError(ImsError):
    """A generated public key failed curve-membership validation."""
    pass


class PreconditionViolation(ImsError):
    """RSA secret derivation was given even or non-invertible primes."""
    pass
