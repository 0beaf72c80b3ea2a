# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0

imsgen_version = "1.0.0"
