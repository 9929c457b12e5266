"""Overlap-add FIR filtering carried out in the frequency domain."""

import math

import numpy as np

from .fir_filters import blackman_lowpass

_REAL_GAIN = 10


def _half(n):
    """Halve an integer, truncating towards zero."""
    return math.trunc(n / 2)


class FFTFilter:
    """Lowpass or bandpass filter using FFT convolution with overlap-add.

    Output lags the input by ``size - degree`` samples.
    """

    def __init__(self, size, degree):
        if degree < 1 or degree >= size:
            raise ValueError("filter degree must be positive and smaller than size")
        self.fft_size = size
        self.degree = degree
        self.overlap = degree
        self.num_samples = size - degree
        self._fft_a = np.zeros(size, dtype=complex)
        self._fft_c = np.zeros(size, dtype=complex)
        self._filter_vector = np.zeros(size, dtype=complex)
        self._overloop = np.zeros(self.overlap, dtype=complex)
        self._inp = 0

    def _install(self, taps):
        padded = np.zeros(self.fft_size, dtype=complex)
        padded[: self.degree] = taps
        self._filter_vector = np.fft.fft(padded)
        self._inp = 0

    def set_band(self, low, high, rate):
        """Use a complex bandpass kernel for ``low`` .. ``high`` Hz."""
        lo = _half(high - low) / rate
        shift = _half(high + low) / rate
        taps = blackman_lowpass(self.degree, lo)
        v = (np.arange(self.degree) - self.degree // 2) * (2 * np.pi * shift)
        self._install(taps * np.exp(1j * v))

    def set_low_pass(self, low, rate):
        """Use a lowpass kernel with cutoff ``low`` Hz."""
        self._install(blackman_lowpass(self.degree, low / rate))

    def _push(self, value, scale):
        sample = self._fft_c[self._inp]
        self._fft_a[self._inp] = value
        self._inp += 1
        if self._inp >= self.num_samples:
            self._inp = 0
            self._fft_a[self.num_samples:] = 0
            spectrum = np.fft.fft(self._fft_a) * self._filter_vector
            if scale != 1:
                spectrum = spectrum * scale
            block = np.fft.ifft(spectrum)
            tail = block[self.num_samples:].copy()
            block[: self.overlap] += self._overloop
            self._overloop = tail
            self._fft_c = block
        return sample

    def filter(self, z):
        """Push a complex sample and return a delayed filtered sample."""
        return complex(self._push(z, 1))

    def filter_real(self, x):
        """Push a real sample and return a delayed filtered real sample (gain 10)."""
        return float(self._push(complex(x, 0), _REAL_GAIN).real)