"""Block Hilbert transform producing an analytic signal from real input."""

import numpy as np


class FFTHilbertFilter:
    """Turn real samples into complex analytic samples, block by block."""

    def __init__(self, size):
        if size < 1:
            raise ValueError("size must be positive")
        self.size = size
        self._quarter = size // 4
        self._block = np.zeros(size, dtype=complex)
        self._analytic = np.zeros(size, dtype=complex)
        self._inp = self._quarter

    def filter(self, v):
        """Push a real sample and return a delayed analytic sample."""
        q = self._quarter
        res = complex(self._analytic[self._inp - q])
        self._block[self._inp] = complex(v, 0)
        self._inp += 1
        if self._inp < self.size:
            return res

        spectrum = np.fft.fft(self._block)
        half = self.size >> 1
        spectrum[1:half] *= 2
        if self.size % 2 and self.size > 1:
            spectrum[half] *= 2
        spectrum[half + 1:] = 0
        self._analytic = np.fft.ifft(spectrum)

        self._block[:q] = self._block[self.size - q - 1: self.size - 1].copy()
        self._inp = q
        return res