#!/usr/bin/env python

"""Fixed-width binary wire format for noisy public values.

Every value below the modulus is sent as an unsigned big-endian
integer exactly ``ceil(bit_length / 8)`` bytes wide, so a vector of
``n`` values is always ``n * frame_size`` bytes and needs no framing.
With the reference 256-bit modulus each frame is 32 bytes and a full
public vector 8 KiB.
"""


class WireCodec:
    """Binary encoder/decoder for values in ``[0, modulus)``.

    Parameters
    ----------
    modulus : int
        Every encoded value must be below this.
    """

    def __init__(self, modulus):
        if modulus < 2:
            raise ValueError("modulus must be at least 2, got %d" % modulus)
        self.modulus = modulus
        self._width = (modulus.bit_length() + 7) // 8

    def encode(self, value):
        """Encode one value.

        Parameters
        ----------
        value : int
            Value in ``[0, modulus)``.

        Returns
        -------
        bytes
            ``frame_size`` bytes, big-endian unsigned.
        """
        if not 0 <= value < self.modulus:
            raise ValueError("value outside [0, modulus)")
        return value.to_bytes(self._width, 'big')

    def decode(self, data):
        """Decode one value, rejecting anything not below the modulus.

        Parameters
        ----------
        data : bytes
            Exactly ``frame_size`` bytes.

        Returns
        -------
        int
        """
        if len(data) != self._width:
            raise ValueError("Expected %d bytes, got %d"
                             % (self._width, len(data)))
        value = int.from_bytes(data, 'big')
        if value >= self.modulus:
            raise ValueError("decoded value not below modulus")
        return value

    def encode_vector(self, values):
        """Encode a sequence of values back to back."""
        return b''.join(self.encode(v) for v in values)

    def decode_vector(self, data, count=None):
        """Decode a buffer written by :meth:`encode_vector`.

        Parameters
        ----------
        data : bytes
            Concatenated frames.
        count : int or None
            Expected number of values; checked if given.

        Returns
        -------
        list of int
        """
        if len(data) % self._width != 0:
            raise ValueError("buffer of %d bytes is not a whole number of "
                             "%d-byte frames" % (len(data), self._width))
        n = len(data) // self._width
        if count is not None and n != count:
            raise ValueError("Expected %d values, got %d" % (count, n))
        return [self.decode(data[i * self._width:(i + 1) * self._width])
                for i in range(n)]

    @property
    def frame_size(self):
        """Size of one encoded value in bytes."""
        return self._width
