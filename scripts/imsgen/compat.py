"""
Compatibility selectors for IMS derivation
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0
from enum import Enum

# SAMPLE reproduces the early (incorrect) derivation used for the first
# batch of distributed sample IMS values; PRODUCTION is the correct form.
CompatibilityMode = Enum('CompatibilityMode', ['SAMPLE', 'PRODUCTION'])

# ES3 is the boot ROM EP_UID calculation that hashes one byte per word;
# CORRECTED hashes whole words and is used on post-ES3 chips.
EpUidVariant = Enum('EpUidVariant', ['ES3', 'CORRECTED'])


def is_sample(mode):
    if not isinstance(mode, CompatibilityMode):
        raise TypeError("Expected a CompatibilityMode, got {!r}".format(mode))
    return mode is CompatibilityMode.SAMPLE
