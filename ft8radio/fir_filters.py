"""Finite impulse response filters built from Blackman-windowed sinc kernels."""

import logging
import math

import numpy as np

_log = logging.getLogger(__name__)


def _blackman_window(size):
    i = np.arange(size)
    return (
        0.42
        - 0.5 * np.cos(2 * np.pi * i / size)
        + 0.08 * np.cos(4 * np.pi * i / size)
    )


def _windowed_sinc(size, f):
    n = np.arange(size) - size // 2
    taps = np.empty(size)
    off_centre = n != 0
    taps[off_centre] = np.sin(2 * np.pi * f * n[off_centre]) / n[off_centre]
    taps[~off_centre] = 2 * np.pi * f
    return taps * _blackman_window(size)


def _half(n):
    """Halve an integer, truncating towards zero."""
    return math.trunc(n / 2)


def blackman_lowpass(size, f):
    """Return a normalised lowpass kernel with cutoff ``f`` (fraction of the rate)."""
    taps = _windowed_sinc(size, f)
    return taps / taps.sum()


def bandpass_kernel(size, fcl, fch):
    """Return a real bandpass kernel between relative frequencies ``fcl`` and ``fch``.

    Invalid bands fall back to the band 0.2 .. 0.4.
    """
    if fcl > 0.5 or fch <= fcl or fch > 0.5:
        _log.warning("invalid bandpass kernel (%f, %f) %d", fcl, fch, size)
        fcl, fch = 0.2, 0.4
    return blackman_lowpass(size, fch) - blackman_lowpass(size, fcl)


def _shifted_kernel(size, low, high, rate):
    lo = _half(high - low) / rate
    shift = _half(high + low) / rate
    taps = blackman_lowpass(size, lo)
    v = (np.arange(size) - size // 2) * (2 * np.pi * shift)
    return taps * np.exp(1j * v)


class BasicFIR:
    """A FIR filter over a circular buffer of complex samples."""

    def __init__(self, size):
        if size < 1:
            raise ValueError("filter size must be positive")
        self.size = size
        self.kernel = np.zeros(size, dtype=complex)
        self.buffer = np.zeros(size, dtype=complex)
        self.ip = 0
        self.sample_rate = 0
        self._offsets = np.arange(size)

    def _history(self):
        """Buffer contents, newest sample first."""
        return self.buffer[(self.ip - self._offsets) % self.size]

    def _advance(self):
        self.ip = (self.ip + 1) % self.size

    def filter(self, z):
        """Push a complex sample and return the filtered value."""
        self.buffer[self.ip] = z
        out = complex(np.dot(self._history(), self.kernel))
        self._advance()
        return out

    def filter_real(self, v):
        """Push a real sample and return the filtered real value."""
        self.buffer[self.ip] = complex(v, 0)
        out = float(np.dot(self._history().real, self.kernel.real))
        self._advance()
        return out

    def set_taps(self, itaps, qtaps):
        """Set the kernel from in-phase and quadrature taps; either may be None."""
        for taps in (itaps, qtaps):
            if taps is not None and len(taps) != self.size:
                raise ValueError(
                    f"expected {self.size} taps, got {len(taps)}"
                )
        re = np.zeros(self.size) if itaps is None else np.asarray(itaps, float)
        im = np.zeros(self.size) if qtaps is None else np.asarray(qtaps, float)
        self.kernel = re + 1j * im


class LowpassFIR(BasicFIR):
    """Lowpass FIR filter."""

    def __init__(self, size, cutoff, rate):
        super().__init__(size)
        self.sample_rate = rate
        self.new_kernel(cutoff)

    def new_kernel(self, cutoff):
        """Recompute the kernel for a new cutoff frequency."""
        self.kernel = blackman_lowpass(self.size, cutoff / self.sample_rate).astype(
            complex
        )


class HighpassFIR(BasicFIR):
    """Highpass FIR filter obtained by spectral inversion of a lowpass."""

    def __init__(self, size, cutoff, rate):
        super().__init__(size)
        self.sample_rate = rate
        self.new_kernel(cutoff)

    def new_kernel(self, cutoff):
        """Recompute the kernel for a new cutoff frequency."""
        taps = -blackman_lowpass(self.size, cutoff / self.sample_rate)
        taps[self.size // 2] += 1.0
        self.kernel = taps.astype(complex)


class BandpassFIR(BasicFIR):
    """Complex bandpass filter: a lowpass shifted to the band's centre."""

    def __init__(self, size, low, high, rate):
        super().__init__(size)
        self.sample_rate = rate
        self.new_kernel(low, high)

    def new_kernel(self, low, high):
        """Recompute the kernel for the band ``low`` .. ``high``."""
        self.kernel = _shifted_kernel(self.size, low, high, self.sample_rate)


class BasicBandPass(BasicFIR):
    """Real-domain bandpass filter applied equally to I and Q."""

    def __init__(self, size, low, high, rate):
        super().__init__(size)
        self.sample_rate = rate
        taps = bandpass_kernel(size, low / rate, high / rate)
        self.kernel = taps + 1j * taps


class AdaptiveFilter:
    """Adaptive noise reduction filter with self-adjusting coefficients."""

    def __init__(self, size, mu):
        size = min(max(size, 2), 20)
        self.size = size
        self.mu = mu if 0 < mu < 1 else 0.20
        self.kernel = np.zeros(size)
        self.kernel[0] = 0.95
        self.kernel[1] = 0.05
        self.buffer = np.zeros(size, dtype=complex)
        self.ip = 0
        self.err = 0.5
        self._offsets = np.arange(size)

    def filter(self, z):
        """Push a complex sample, adapt the kernel and return the filtered value."""
        ref = self.buffer[self.ip]
        self.buffer[self.ip] = z
        history = self.buffer[(self.ip - self._offsets) % self.size]
        out = complex(np.dot(history, self.kernel))
        self.ip = (self.ip + 1) % self.size
        self.err = abs(ref) - abs(out)
        self.kernel = 0.99 * self.kernel + 2.0 * self.mu * self.err * complex(z).real
        self.kernel = self.kernel / self.kernel.sum()
        return out


class DecimatingFIR(BasicFIR):
    """FIR filter that yields one output for every ``factor`` inputs."""

    def __init__(self, size, rate, factor):
        super().__init__(size)
        self.sample_rate = rate
        self.factor = factor
        self.counter = 0

    @classmethod
    def lowpass(cls, size, low, rate, factor):
        """Create a decimating lowpass filter."""
        fir = cls(size, rate, factor)
        fir.new_kernel(low)
        return fir

    @classmethod
    def bandpass(cls, size, low, high, rate, factor):
        """Create a decimating bandpass filter."""
        fir = cls(size, rate, factor)
        fir.new_kernel(low, high)
        return fir

    def new_kernel(self, low, high=None):
        """Set a lowpass kernel, or a bandpass kernel when ``high`` is given."""
        if high is None:
            self.kernel = blackman_lowpass(self.size, low / self.sample_rate).astype(
                complex
            )
        else:
            self.kernel = _shifted_kernel(self.size, low, high, self.sample_rate)

    def process(self, z):
        """Push a complex sample; return the output, or None between outputs."""
        self.buffer[self.ip] = z
        self.counter += 1
        if self.counter < self.factor:
            self._advance()
            return None
        self.counter = 0
        out = complex(np.dot(self._history(), self.kernel))
        self._advance()
        return out

    def process_real(self, v):
        """Push a real sample; return the output, or None between outputs."""
        self.counter += 1
        if self.counter < self.factor:
            self.buffer[self.ip] = complex(v, 0)
            self._advance()
            return None
        self.counter = 0
        return self.filter_real(v)


class HilbertFilter:
    """FIR filter giving a 90 degree phase shift between I and Q."""

    def __init__(self, size, f, rate):
        self.size = size
        self.rate = rate
        self._offsets = np.arange(size)
        self._adjust(f)

    def _adjust(self, centre):
        taps = blackman_lowpass(self.size, centre)
        omega = 2.0 * math.pi * centre
        arg = omega * (np.arange(self.size) - (self.size - 1) / (2.0 * self.rate))
        self.cos_kernel = taps * np.cos(arg)
        self.sin_kernel = taps * np.sin(arg)
        self.buffer = np.zeros(self.size, dtype=complex)
        self.ip = 0

    def filter(self, z):
        """Push a complex sample and return the phase-shifted value."""
        self.buffer[self.ip] = z
        self.ip = (self.ip + 1) % self.size
        history = self.buffer[(self.ip - self._offsets) % self.size]
        return complex(
            float(np.dot(history.real, self.cos_kernel)),
            float(np.dot(history.imag, self.sin_kernel)),
        )

    def filter_pair(self, a, b):
        """Push the sample ``a + jb`` and return the phase-shifted value."""
        return self.filter(complex(a, b))