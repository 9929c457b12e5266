"""Frequency-domain lowpass filter that lowers the sample rate."""

import numpy as np

from .fir_filters import blackman_lowpass

_DEGREE = 115


class DecimatingFilter:
    """Filter blocks of half the input rate and resample them in the FFT domain.

    Every ``in_rate // 2`` inputs produce ``out_rate // 2`` outputs.
    """

    def __init__(self, in_rate, out_rate, freq):
        if in_rate < _DEGREE:
            raise ValueError(f"input rate must be at least {_DEGREE}")
        if out_rate < 2 or out_rate > in_rate:
            raise ValueError("output rate must be between 2 and the input rate")
        self.in_rate = in_rate
        self.out_rate = out_rate
        half = in_rate // 2
        i = np.arange(half)
        self._window = np.zeros(in_rate)
        self._window[:half] = 5 * (
            0.42
            - 0.5 * np.cos(2 * np.pi * i / in_rate / 2)
            + 0.08 * np.cos(4 * np.pi * i / in_rate / 2)
        )
        taps = blackman_lowpass(_DEGREE, freq / 2 / in_rate)
        kernel = np.zeros(in_rate, dtype=complex)
        kernel[:_DEGREE] = taps * (1 + 1j)
        self._freq_window = np.fft.fft(kernel)
        self._in = np.zeros(in_rate, dtype=complex)
        self._hold = np.zeros(in_rate, dtype=complex)
        self._out = np.zeros(out_rate, dtype=complex)
        self._inp = 0
        self._outp = out_rate

    def process(self, z):
        """Push one sample; return an output sample, or None when none is ready."""
        result = None
        out_half = self.out_rate // 2
        if self._outp < out_half:
            result = complex(self._out[self._outp])
            self._outp += 1

        half = self.in_rate // 2
        self._in[half + self._inp] = z
        self._hold[self._inp] = z
        self._inp += 1
        if self._inp < half:
            return result

        spectrum = np.fft.fft(self._in * self._window) * self._freq_window
        out = self._out.copy()
        out[:out_half] = spectrum[:out_half]
        out[out_half: 2 * out_half] = spectrum[self.in_rate - out_half:]
        self._out = np.fft.ifft(out)
        self._outp = 0
        self._inp = 0
        self._in[:half] = self._hold[:half]
        return result