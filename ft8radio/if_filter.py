"""Intermediate frequency filter with a movable centre."""

import math

from .fft_filters import FFTFilter

_FFT_SIZE = 1024
_DEGREE = 255


def _half(n):
    return math.trunc(n / 2)


class IFFilter:
    """Band filter of fixed width whose centre can be moved."""

    def __init__(self, rate, width):
        self.rate = rate
        self.width = width
        self.middle = 0
        self._filter = FFTFilter(_FFT_SIZE, _DEGREE)
        self._filter.set_band(-_half(width), _half(width), rate)

    def set_middle(self, middle):
        """Centre the pass band on ``middle`` Hz."""
        self.middle = middle
        self._filter.set_band(
            middle - _half(self.width), middle + _half(self.width), self.rate
        )

    def process(self, samples):
        """Filter a sequence of complex samples and return the results as a list."""
        return [self._filter.filter(z) for z in samples]