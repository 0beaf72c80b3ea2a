#! /usr/bin/env python3
#
# Copyright 2020-2026 STMicroelectronics
#
# SPDX-License-Identifier: Apache-2.0
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import logging
import sys

import click

from imsgen import imsgen_version
from imsgen.compat import CompatibilityMode, EpUidVariant
from imsgen.context import ImsContext, derive_keys
from imsgen.errors import SeedUnavailable
from imsgen.ims import IMS_SIZE
from imsgen.keys import KeyValidationError
from imsgen.rng import resolve_seed

MIN_PYTHON_VERSION = (3, 8)
if sys.version_info < MIN_PYTHON_VERSION:
    sys.exit("Python %s.%s or newer is required by imsgen."
             % MIN_PYTHON_VERSION)

KEY_FIELDS = ['ep_uid', 'epsk', 'epvk', 'essk', 'esvk', 'errk_p', 'errk_q']


def get_mode(sample_compatibility):
    if sample_compatibility:
        return CompatibilityMode.SAMPLE
    return CompatibilityMode.PRODUCTION


def get_uid_variant(es3_uid):
    if es3_uid:
        return EpUidVariant.ES3
    return EpUidVariant.CORRECTED


def parse_ims(ctx, param, value):
    try:
        ims = bytes.fromhex(value)
    except ValueError:
        raise click.BadParameter("{} is not a hex string".format(value))
    if len(ims) != IMS_SIZE:
        raise click.BadParameter(
            "IMS must be {} bytes, got {}".format(IMS_SIZE, len(ims)))
    return ims


def print_keys(ims, keys, file=None):
    print("ims: {}".format(ims.hex()), file=file)
    for name in KEY_FIELDS:
        print("{}: {}".format(name, getattr(keys, name).value.hex()),
              file=file)
    print(file=file)


def sample_options(f):
    f = click.option('--es3-uid', default=False, is_flag=True,
                     help='Use the ES3 boot ROM EP_UID calculation')(f)
    f = click.option('--sample-compatibility', default=False, is_flag=True,
                     help='Reproduce the original sample IMS derivation')(f)
    return f


@sample_options
@click.option('-i', '--ims', metavar='hex', required=True,
              callback=parse_ims,
              help='The {}-byte IMS as a hex string'.format(IMS_SIZE))
@click.command(help='Derive the endpoint keys for one IMS')
def derive(ims, sample_compatibility, es3_uid):
    try:
        keys = derive_keys(ims, get_mode(sample_compatibility),
                           get_uid_variant(es3_uid))
    except KeyValidationError as e:
        raise click.ClickException("Key validation failed: {}".format(e))
    print_keys(ims, keys)


@sample_options
@click.option('-n', '--count', default=1, type=click.IntRange(min=1),
              help='Number of IMS values to generate')
@click.option('--prng-seed-string', metavar='string',
              help='Raw string to seed the PRNG with')
@click.option('--prng-seed-file', metavar='filename',
              help='File whose first 128 bytes seed the PRNG '
                   '(e.g. /dev/urandom)')
@click.option('-o', '--output', metavar='filename', default='-',
              type=click.File('w', lazy=False),
              help='Specify the output file\'s name. \
                    The stdout is used if it is not provided.')
@click.command(help='Generate random IMS values and their endpoint keys')
def generate(prng_seed_file, prng_seed_string, count, output,
             sample_compatibility, es3_uid):
    try:
        seed = resolve_seed(prng_seed_file, prng_seed_string)
    except SeedUnavailable as e:
        raise click.UsageError(str(e))

    with ImsContext(seed, get_mode(sample_compatibility),
                    get_uid_variant(es3_uid)) as context:
        for _ in range(count):
            ims = context.generate_ims()
            try:
                keys = context.derive(ims)
            except KeyValidationError as e:
                raise click.ClickException(
                    "Key validation failed: {}".format(e))
            print_keys(ims, keys, file=output)


@click.command(help='Print imsgen version information')
def version():
    print(imsgen_version)


@click.option('-v', '--verbose', default=False, is_flag=True,
              help='Dump intermediate key material')
@click.group(context_settings=dict(help_option_names=['-h', '--help']))
def imsgen(verbose):
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING,
                        format='%(name)s: %(message)s')


imsgen.add_command(derive)
imsgen.add_command(generate)
imsgen.add_command(version)


if __name__ == '__main__':
    imsgen()
