"""
Length-prefixed byte buffers and big integer conversion
"""
# Copyright 2020-2026 STMicroelectronics
# SPDX-License-Identifier: Apache-2.0

# Bytes per big integer limb; an n-limb FF holds n * FF_LIMB_BYTES bytes.
FF_LIMB_BYTES = 32


class Octet():
    """
    Fixed-capacity byte buffer with an explicit logical length.

    Only the first ``len`` bytes are meaningful; everything past it is
    scratch and is never returned to a caller.
    """
    def __init__(self, capacity, data=None):
        self.val = bytearray(capacity)
        self.len = 0
        if data is not None:
            self.set(data)

    @property
    def capacity(self):
        return len(self.val)

    @property
    def value(self):
        return bytes(self.val[:self.len])

    def __bytes__(self):
        return self.value

    def __len__(self):
        return self.len

    def __eq__(self, other):
        if isinstance(other, Octet):
            return self.value == other.value
        if isinstance(other, (bytes, bytearray)):
            return self.value == bytes(other)
        return NotImplemented

    def __repr__(self):
        return "Octet(len={}, capacity={}, {})".format(
            self.len, self.capacity, self.value.hex())

    def _check_room(self, count):
        if self.len + count > self.capacity:
            raise ValueError("Octet overflow: {} + {} > {}".format(
                self.len, count, self.capacity))

    def set(self, data):
        """Replace the contents with data and set the length to match."""
        if len(data) > self.capacity:
            raise ValueError("Octet overflow: {} > {}".format(
                len(data), self.capacity))
        self.val[:len(data)] = data
        self.len = len(data)

    def jbytes(self, data):
        """Append data."""
        self._check_room(len(data))
        self.val[self.len:self.len + len(data)] = data
        self.len += len(data)

    def jbyte(self, b, count):
        """Append count copies of the byte b."""
        self._check_room(count)
        self.val[self.len:self.len + count] = bytes([b & 0xff]) * count
        self.len += count

    def xorbyte(self, b):
        """XOR every logical byte with b."""
        for i in range(self.len):
            self.val[i] ^= b

    def truncate(self, length):
        if length > self.len:
            raise ValueError("Cannot extend an octet by truncation")
        self.len = length

    def clear(self):
        """Zeroize the whole buffer, not only the logical part."""
        for i in range(self.capacity):
            self.val[i] = 0
        self.len = 0


def _check_ff_size(length, n):
    if n < 1:
        raise ValueError("FF size must be at least one limb")
    if length > n * FF_LIMB_BYTES:
        raise ValueError("{} byte octet does not fit in a {} limb FF".format(
            length, n))


def ff_from_big_endian_octet(octet, n):
    """Load a big-endian octet into an n-limb big integer."""
    data = bytes(octet)
    _check_ff_size(len(data), n)
    return int.from_bytes(data, byteorder='big')


def reverse_buf(buf):
    """Reverse a bytearray in place."""
    front = 0
    rear = len(buf) - 1
    while front < rear:
        buf[front], buf[rear] = buf[rear], buf[front]
        front += 1
        rear -= 1


def ff_from_little_endian_octet(octet, n):
    """
    Load a little-endian octet into an n-limb big integer.

    The byte order is reversed on a scratch copy; the caller's buffer is
    left untouched.
    """
    scratch = bytearray(bytes(octet))
    _check_ff_size(len(scratch), n)
    reverse_buf(scratch)
    return ff_from_big_endian_octet(scratch, n)


def ff_to_octet(value, n):
    """Store an n-limb big integer as a fixed-width big-endian octet."""
    size = n * FF_LIMB_BYTES
    if value < 0:
        raise ValueError("FF values are unsigned")
    return Octet(size, value.to_bytes(size, byteorder='big'))
