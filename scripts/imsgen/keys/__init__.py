# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0

"""
Endpoint key pair support: Goldilocks (EPVK), Curve25519 (ESVK) and the
RSA CRT secret (ERRK/ERPK).
"""

from ..errors import KeyValidationError
from . import c25519, goldilocks
from .rsa import ERPK_EXPONENT, RsaSecret, rsa_secret
