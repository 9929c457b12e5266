import cmath
import math

import numpy as np
import pytest

from ft8radio.fir_filters import (
    AdaptiveFilter,
    BandpassFIR,
    BasicBandPass,
    BasicFIR,
    DecimatingFIR,
    HighpassFIR,
    HilbertFilter,
    LowpassFIR,
    bandpass_kernel,
    blackman_lowpass,
)


def _feed(fir, samples):
    return [fir.filter(s) for s in samples]


def test_blackman_lowpass_normalised():
    taps = blackman_lowpass(31, 0.1)
    assert len(taps) == 31
    assert taps.sum() == pytest.approx(1.0)


def test_bandpass_kernel_rejects_dc():
    taps = bandpass_kernel(49, 0.1, 0.3)
    assert taps.sum() == pytest.approx(0.0, abs=1e-9)


def test_bandpass_kernel_invalid_band_falls_back():
    assert np.allclose(bandpass_kernel(31, 0.4, 0.2), bandpass_kernel(31, 0.2, 0.4))
    assert np.allclose(bandpass_kernel(31, 0.1, 0.9), bandpass_kernel(31, 0.2, 0.4))


def test_basic_fir_delay_taps():
    fir = BasicFIR(3)
    fir.set_taps([0.0, 1.0, 0.0], None)
    out = _feed(fir, [1 + 1j, 2 + 0j, 3 - 1j, 4 + 2j])
    assert out[1:] == [1 + 1j, 2 + 0j, 3 - 1j]


def test_basic_fir_quadrature_taps():
    fir = BasicFIR(2)
    fir.set_taps(None, [1.0, 0.0])
    assert fir.filter(2.0) == 2j


def test_set_taps_wrong_length():
    fir = BasicFIR(4)
    with pytest.raises(ValueError):
        fir.set_taps([1.0, 2.0], None)


def test_basic_fir_invalid_size():
    with pytest.raises(ValueError):
        BasicFIR(0)


def test_lowpass_dc_gain():
    fir = LowpassFIR(31, 1000, 48000)
    out = _feed(fir, [1.0] * 40)
    assert out[-1].real == pytest.approx(fir.kernel.sum().real)
    assert out[-1].real == pytest.approx(1.0)


def test_lowpass_real_matches_complex():
    a = LowpassFIR(15, 2000, 12000)
    b = LowpassFIR(15, 2000, 12000)
    samples = [math.sin(0.3 * n) for n in range(30)]
    real_out = [a.filter_real(s) for s in samples]
    complex_out = [b.filter(s).real for s in samples]
    assert real_out == pytest.approx(complex_out)


def test_lowpass_new_kernel_changes_kernel():
    fir = LowpassFIR(31, 1000, 48000)
    before = fir.kernel.copy()
    fir.new_kernel(5000)
    assert not np.allclose(before, fir.kernel)
    assert fir.kernel.sum().real == pytest.approx(before.sum().real)


def test_highpass_rejects_dc():
    fir = HighpassFIR(31, 1000, 48000)
    out = _feed(fir, [1.0] * 40)
    assert abs(out[-1]) < 1e-9


def test_bandpass_passes_centre_tone():
    rate = 48000
    fir = BandpassFIR(65, 1000, 3000, rate)
    centre = 2000 / rate
    tone = [cmath.exp(2j * math.pi * centre * n) for n in range(200)]
    out = _feed(fir, tone)
    assert abs(out[-1]) == pytest.approx(1.0, abs=1e-6)


def test_bandpass_rejects_far_tone():
    rate = 48000
    fir = BandpassFIR(65, 1000, 3000, rate)
    far = -10000 / rate
    tone = [cmath.exp(2j * math.pi * far * n) for n in range(200)]
    out = _feed(fir, tone)
    assert abs(out[-1]) < 0.01


def test_basic_band_pass_kernel_real_equals_imag():
    fir = BasicBandPass(31, 2000, 6000, 24000)
    assert np.allclose(fir.kernel.real, fir.kernel.imag)
    assert np.allclose(fir.kernel.real, bandpass_kernel(31, 2000 / 24000, 6000 / 24000))


@pytest.mark.parametrize("size, expected", [(1, 2), (10, 10), (50, 20)])
def test_adaptive_size_clamped(size, expected):
    assert len(AdaptiveFilter(size, 0.1).kernel) == expected


def test_adaptive_mu_default():
    assert AdaptiveFilter(5, 2.0).mu == pytest.approx(0.20)
    assert AdaptiveFilter(5, 0.05).mu == pytest.approx(0.05)


def test_adaptive_kernel_stays_normalised():
    f = AdaptiveFilter(8, 0.01)
    for n in range(20):
        f.filter(complex(math.cos(0.2 * n), math.sin(0.2 * n)))
        assert f.kernel.sum() == pytest.approx(1.0)


def test_decimating_output_rate():
    fir = DecimatingFIR.lowpass(21, 1000, 48000, 4)
    outputs = [fir.process(1.0) for _ in range(40)]
    produced = [o for o in outputs if o is not None]
    assert len(produced) == 10
    assert all(o is None for o in outputs[:3])
    assert produced[-1].real == pytest.approx(1.0)


def test_decimating_real_output_rate():
    fir = DecimatingFIR.lowpass(21, 1000, 48000, 3)
    outputs = [fir.process_real(1.0) for _ in range(30)]
    produced = [o for o in outputs if o is not None]
    assert len(produced) == 10
    assert produced[-1] == pytest.approx(fir.kernel.sum().real)


def test_decimating_bandpass_kernel_matches_bandpass_fir():
    dec = DecimatingFIR.bandpass(33, 1000, 3000, 48000, 2)
    ref = BandpassFIR(33, 1000, 3000, 48000)
    assert np.allclose(dec.kernel, ref.kernel)


def test_decimating_new_kernel_lowpass_matches_lowpass_fir():
    dec = DecimatingFIR.bandpass(33, 1000, 3000, 48000, 2)
    dec.new_kernel(4000)
    assert np.allclose(dec.kernel, LowpassFIR(33, 4000, 48000).kernel)


def test_hilbert_pair_equals_complex():
    a = HilbertFilter(13, 0.1, 48000)
    b = HilbertFilter(13, 0.1, 48000)
    for n in range(30):
        x, y = math.cos(0.4 * n), math.sin(0.7 * n)
        assert a.filter_pair(x, y) == pytest.approx(b.filter(complex(x, y)))


def test_hilbert_is_linear():
    a = HilbertFilter(13, 0.1, 48000)
    b = HilbertFilter(13, 0.1, 48000)
    for n in range(25):
        z = complex(math.cos(0.3 * n), math.sin(0.5 * n))
        assert b.filter(2 * z) == pytest.approx(2 * a.filter(z))


def test_hilbert_zero_input():
    f = HilbertFilter(13, 0.2, 8000)
    assert all(f.filter(0j) == 0j for _ in range(20))