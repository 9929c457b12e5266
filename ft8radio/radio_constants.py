"""Shared constants and small numeric helpers used by the radio code."""

import math

CURRENT_VERSION = "8.1"

I_AND_Q = 0o100
Q_AND_I = 0o101
I_ONLY = 0o102
Q_ONLY = 0o104

MSEC_FOR_TIMER = 10
PILOTFILTER_SIZE = 31
RDSLOWPASS_SIZE = 89
HILBERT_SIZE = 13
RDSBANDFILTER_SIZE = 49
FFT_SIZE = 256
PILOT_WIDTH = 1000
RDS_WIDTH = 1500
LEVEL_SIZE = 512
LEVEL_FREQ = 3

_TWO_PI = 2 * math.pi


def khz(x):
    """Return ``x`` kilohertz expressed in hertz."""
    return x * 1000


def mhz(x):
    """Return ``x`` megahertz expressed in hertz."""
    return khz(x) * 1000


def is_indeterminate(x):
    """Return True when ``x`` is NaN."""
    return x != x


def is_infinite(x):
    """Return True when ``x`` is positive infinity."""
    return x == math.inf


def get_db(x, y):
    """Return the level of ``x`` relative to ``y`` in decibels."""
    return 20 * math.log10((x + 1) / float(y))


def pi_constrain(val):
    """Fold an angle in radians into the range [0, 2*pi)."""
    if 0 <= val < _TWO_PI:
        return val
    if val >= _TWO_PI:
        return math.fmod(val, _TWO_PI)
    if val > -_TWO_PI:
        return val + _TWO_PI
    return _TWO_PI - math.fmod(-val, _TWO_PI)