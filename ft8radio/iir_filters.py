"""Recursive (IIR) filters built from cascaded second-order sections."""

import cmath
import enum
import math
from dataclasses import dataclass, replace

_MAX_ORDER = 0o176
_DEFAULT_ORDER = 6
_PASSBAND_ATTENUATION = -1  # dB
_INV_CHEBYSHEV_STOPBAND = -90  # dB


class FilterType(enum.IntEnum):
    """Analog prototype families."""

    CHEBYSHEV = 0o100
    BUTTERWORTH = 0o101
    INV_CHEBYSHEV = 0o102
    ELLIPTIC = 0o103


@dataclass(frozen=True)
class Biquad:
    """A second-order section (a0 s^2 + a1 s + a2) / (b0 s^2 + b1 s + b2)."""

    a0: float
    a1: float
    a2: float
    b0: float
    b1: float
    b2: float


def _attenuation_ratio(apass, astop):
    nominator = 10.0 ** (-0.1 * astop) - 1
    denom = 10.0 ** (-0.1 * apass) - 1
    return nominator / denom


def _check_band(wpass, wstop):
    if wpass <= 0 or wstop <= 0 or wpass == wstop:
        raise ValueError("pass and stop frequencies must be positive and distinct")


def guess_order_butterworth(apass, astop, wpass, wstop):
    """Estimate the Butterworth order meeting the given attenuation spec."""
    _check_band(wpass, wstop)
    tmp = math.log(_attenuation_ratio(apass, astop)) / (
        2 * math.log(wstop / wpass)
    )
    return int(tmp + 0.5)


def guess_order_chebyshev(apass, astop, wpass, wstop):
    """Estimate the Chebyshev order meeting the given attenuation spec."""
    _check_band(wpass, wstop)
    ratio = math.sqrt(_attenuation_ratio(apass, astop))
    tmp = math.acosh(ratio) / math.acosh(wstop / wpass)
    return int(tmp + 0.5) + 1


def guess_order_inverse_chebyshev(apass, astop, wpass, wstop):
    """Estimate the inverse Chebyshev order; equal to the Chebyshev estimate."""
    return guess_order_chebyshev(apass, astop, wpass, wstop)


def warp_d_to_a(fd, fs):
    """Pre-warp a digital frequency into an analog angular frequency."""
    return 2.0 * fs * math.tan((2 * math.pi * fd) / (2 * fs))


def warp_a_to_d(omega, fs):
    """Map an analog angular frequency back to the digital domain."""
    return int(2.0 * fs / math.tan(omega / (2 * fs)))


def bilinear(quads, fs):
    """Apply the bilinear transform; return the digital sections and their gain."""
    f2 = 2.0 * fs
    f4 = f2 * f2
    gain = 1.0
    result = []
    for q in quads:
        n0 = q.a0 * f4 + q.a1 * f2 + q.a2
        n1 = 2 * (q.a2 - q.a0 * f4)
        n2 = q.a0 * f4 - q.a1 * f2 + q.a2
        d0 = q.b0 * f4 + q.b1 * f2 + q.b2
        d1 = 2 * (q.b2 - q.b0 * f4)
        d2 = q.b0 * f4 - q.b1 * f2 + q.b2
        result.append(Biquad(1.0, n1 / n0, n2 / n0, 1.0, d1 / d0, d2 / d0))
        gain *= n0 / d0
    return result, gain


def _pole_pair(sigma, omega):
    mag = sigma * sigma + omega * omega
    return Biquad(0.0, 0.0, mag, 1.0, -2 * sigma, mag)


def _pair_count(num_quads, order):
    return num_quads - 1 if order % 2 else num_quads


def new_butterworth(num_quads, order, apass):
    """Normalised Butterworth lowpass prototype; returns (sections, gain)."""
    eps = math.sqrt(10.0 ** (-0.1 * apass) - 1)
    r = 1.0 / eps ** (1.0 / order)
    quads = [Biquad(0.0, 0.0, r, 0.0, 1.0, r)] if order % 2 else []
    for k in range(_pair_count(num_quads, order)):
        phim = math.pi * (2 * k + order + 1) / (2 * order)
        quads.append(_pole_pair(r * math.cos(phim), r * math.sin(phim)))
    return quads[:num_quads], 1.0


def new_chebyshev(num_quads, order, apass):
    """Normalised Chebyshev lowpass prototype; returns (sections, gain)."""
    eps = math.sqrt(10.0 ** (-0.1 * apass) - 1)
    d = math.asinh(1.0 / eps) / order
    sinh_d = math.sinh(d)
    cosh_d = math.cosh(d)
    quads = [Biquad(0.0, 0.0, sinh_d, 0.0, 1.0, sinh_d)] if order % 2 else []
    for k in range(_pair_count(num_quads, order)):
        phim = math.pi * (2 * k + 1) / (2 * order)
        quads.append(
            _pole_pair(-sinh_d * math.sin(phim), cosh_d * math.cos(phim))
        )
    gain = 1.0 if order % 2 else 10.0 ** (0.05 * apass)
    return quads[:num_quads], gain


def new_inverse_chebyshev(num_quads, order, apass):
    """Normalised inverse Chebyshev lowpass prototype; returns (sections, gain).

    The stop band attenuation is fixed at 90 dB; ``apass`` is not used.
    """
    eps = 1.0 / math.sqrt(10.0 ** (-0.1 * _INV_CHEBYSHEV_STOPBAND) - 1)
    d = math.asinh(1.0 / eps) / order
    sinh_d = math.sinh(d)
    cosh_d = math.cosh(d)
    quads = []
    if order % 2:
        quads.append(Biquad(0.0, 0.0, 1.0 / sinh_d, 0.0, 1.0, 1.0 / sinh_d))
    for k in range(_pair_count(num_quads, order)):
        phim = math.pi * (2 * k + 1) / (2 * order)
        sigma_p = -sinh_d * math.sin(phim)
        omega_p = cosh_d * math.cos(phim)
        mag_p = sigma_p * sigma_p + omega_p * omega_p
        sigma = sigma_p / mag_p
        omega = -omega_p / mag_p
        omega_zero = 1.0 / math.cos(phim)
        a1 = 0.0
        a2 = omega_zero * omega_zero
        b1 = -2 * sigma
        b2 = sigma * sigma + omega * omega
        quads.append(Biquad(1.0, a1, a2, a2 / b2, b1 * a2 / b2, b2 * a2 / b2))
    return quads[:num_quads], 1.0


_PROTOTYPES = {
    FilterType.CHEBYSHEV: new_chebyshev,
    FilterType.BUTTERWORTH: new_butterworth,
    FilterType.INV_CHEBYSHEV: new_inverse_chebyshev,
}


def new_normalized(num_quads, order, apass, ftype):
    """Build a normalised prototype of type ``ftype`` (Butterworth otherwise)."""
    if order <= 0:
        order = _DEFAULT_ORDER
    prototype = _PROTOTYPES.get(ftype, new_butterworth)
    return prototype(num_quads, order, apass)


def complex_quadratic(a, b, c):
    """Return both roots of a x^2 + b x + c over the complex numbers."""
    a, b, c = complex(a), complex(b), complex(c)
    temp = cmath.sqrt(b * b - 4 * a * c)
    return (-b + temp) / (2 * a), (-b - temp) / (2 * a)


def _conjugate_pair(d, e):
    return (
        (1.0, -2.0 * d.real, (d * d.conjugate()).real),
        (1.0, -2.0 * e.real, (e * e.conjugate()).real),
    )


def _substituted(c0, c1, c2, wo, bw):
    d, _ = complex_quadratic(c0, c1, c2)
    d, e = complex_quadratic(1.0, -d * bw, wo * wo)
    return _conjugate_pair(d, e)


def unnormalize_bandpass(quads, wo, bw):
    """Turn lowpass prototype sections into twice as many bandpass sections."""
    result = []
    for q in quads:
        if q.a0 == 0.0:
            numerator = ((0.0, math.sqrt(q.a2) * bw, 0.0),) * 2
        else:
            numerator = _substituted(q.a0, q.a1, q.a2, wo, bw)
        denominator = _substituted(q.b0, q.b1, q.b2, wo, bw)
        result.extend(
            Biquad(*num, *den) for num, den in zip(numerator, denominator)
        )
    return result


class BasicIIR:
    """A cascade of digital second-order sections in direct form II."""

    def __init__(self, quads=(), gain=1.0):
        self.quads = list(quads)
        self.gain = gain
        self._m1 = [0j] * len(self.quads)
        self._m2 = [0j] * len(self.quads)

    @property
    def num_quads(self):
        """Number of second-order sections."""
        return len(self.quads)

    def filter(self, z):
        """Push a complex sample and return the filtered value."""
        o = complex(z) * self.gain
        for k, q in enumerate(self.quads):
            m1, m2 = self._m1[k], self._m2[k]
            w = o - m1 * q.b1 - m2 * q.b2
            o = w + m1 * q.a1 + m2 * q.a2
            self._m2[k] = m1
            self._m1[k] = w
        return o

    def filter_real(self, v):
        """Push a real sample and return the filtered real value."""
        o = float(v) * self.gain
        for k, q in enumerate(self.quads):
            rm1, rm2 = self._m1[k].real, self._m2[k].real
            w = o - rm1 * q.b1 - rm2 * q.b2
            o = w + rm1 * q.a1 + rm2 * q.a2
            self._m2[k] = self._m1[k]
            self._m1[k] = complex(w, 0)
        return o


def _safe_pass(fpass, fs):
    return fs // 4 if 2 * fpass >= fs else fpass


def _lowpass(num_quads, order, apass, ftype, fpass, fs):
    omega = warp_d_to_a(_safe_pass(fpass, fs), fs)
    prototype, gain = new_normalized(num_quads, order, apass, ftype)
    scaled = [
        replace(
            q,
            a1=q.a1 * omega,
            b1=q.b1 * omega,
            a2=q.a2 * omega * omega,
            b2=q.b2 * omega * omega,
        )
        for q in prototype
    ]
    quads, digital_gain = bilinear(scaled, fs)
    return quads, gain * digital_gain


class LowPassIIR(BasicIIR):
    """Lowpass IIR filter of the given order and type."""

    def __init__(self, order, fpass, fs, ftype=FilterType.BUTTERWORTH):
        num_quads = ((order + 1) & _MAX_ORDER) // 2
        quads, gain = _lowpass(
            num_quads, order, _PASSBAND_ATTENUATION, ftype, fpass, fs
        )
        super().__init__(quads, gain)

    @classmethod
    def from_spec(cls, apass, astop, fpass, fstop, fs):
        """Create a Butterworth lowpass meeting an attenuation specification."""
        order = guess_order_butterworth(apass, astop, fpass, fstop)
        num_quads = max(order + 1, 0) // 2
        quads, gain = _lowpass(
            num_quads, order, apass, FilterType.BUTTERWORTH, fpass, fs
        )
        filt = cls.__new__(cls)
        BasicIIR.__init__(filt, quads, gain)
        return filt


class HighPassIIR(BasicIIR):
    """Highpass IIR filter of the given order and type."""

    def __init__(self, order, fpass, fs, ftype=FilterType.BUTTERWORTH):
        num_quads = ((order + 1) & _MAX_ORDER) // 2
        omega = warp_d_to_a(_safe_pass(fpass, fs), fs)
        prototype, gain = new_normalized(
            num_quads, order, _PASSBAND_ATTENUATION, ftype
        )
        analog = []
        for q in prototype:
            gain *= q.a2 / q.b2
            analog.append(
                Biquad(
                    1.0,
                    (q.a1 / q.a2) * omega,
                    (q.a0 / q.a2) * omega * omega,
                    1.0,
                    (q.b1 / q.b2) * omega,
                    (q.b0 / q.b2) * omega * omega,
                )
            )
        quads, digital_gain = bilinear(analog, fs)
        super().__init__(quads, gain * digital_gain)


class BandPassIIR(BasicIIR):
    """Bandpass IIR filter between ``flow`` and ``fhigh``."""

    def __init__(self, order, flow, fhigh, fs, ftype=FilterType.BUTTERWORTH):
        order = (order + 1) & _MAX_ORDER
        num_quads = order
        if flow >= fs // 2:
            flow = int(0.2 * fs)
        if fhigh >= fs // 2:
            fhigh = int(0.3 * fs)
        omega_low = warp_d_to_a(flow, fs)
        omega_high = warp_d_to_a(fhigh, fs)
        wo = math.sqrt(omega_low * omega_high)
        bw = omega_high - omega_low
        prototype, gain = new_normalized(
            num_quads // 2, order, _PASSBAND_ATTENUATION, ftype
        )
        analog = unnormalize_bandpass(prototype, wo, bw)
        quads, digital_gain = bilinear(analog, fs)
        super().__init__(quads, gain * digital_gain)