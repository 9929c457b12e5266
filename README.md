# ft8radio

Building blocks for a software-defined radio receiver: digital filters for
real and complex IQ streams, and a client that receives 8-bit IQ samples from
a SpyServer and delivers them as complex samples at 96 kS/s.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Filters

All streaming filters take one sample per call.

- `ft8radio.fir_filters`: Blackman-windowed sinc FIR filters.
  `LowpassFIR(size, cutoff, rate)`, `HighpassFIR`, `BandpassFIR(size, low, high, rate)`
  (a complex band filter) and `BasicBandPass` offer `filter(z)` for complex
  samples and `filter_real(v)` for real ones; `set_taps` loads custom taps.
  `DecimatingFIR.lowpass(...)` and `DecimatingFIR.bandpass(...)` build filters
  whose `process(z)` / `process_real(v)` return `None` until an output is due.
  `AdaptiveFilter(size, mu)` adapts its coefficients as it runs, and
  `HilbertFilter(size, f, rate)` shifts the phase between I and Q.
  The kernel helpers `blackman_lowpass(size, f)` and
  `bandpass_kernel(size, fcl, fch)` are also available.
- `ft8radio.iir_filters`: cascades of biquad sections. `LowPassIIR(order, fpass, fs, ftype)`,
  `HighPassIIR` and `BandPassIIR(order, flow, fhigh, fs, ftype)` with
  Butterworth, Chebyshev and inverse Chebyshev prototypes chosen by
  `FilterType`; `LowPassIIR.from_spec(apass, astop, fpass, fstop, fs)` derives a
  Butterworth order from an attenuation specification. The design steps
  (`guess_order_butterworth`, `new_normalized`, `bilinear`,
  `unnormalize_bandpass`, `warp_d_to_a`, ...) are public functions.
- `ft8radio.fft_filters`: `FFTFilter(size, degree)`, overlap-add fast
  convolution; configure with `set_band` or `set_low_pass`. Output lags the
  input by `size - degree` samples.
- `ft8radio.if_filter`: `IFFilter(rate, width)`, a band filter whose centre is
  moved with `set_middle`; `process(samples)` returns a list.
- `ft8radio.decimating_filter`: `DecimatingFilter(in_rate, out_rate, freq)`,
  lowpass filtering and rate reduction in the frequency domain; `process(z)`
  returns a sample or `None`.
- `ft8radio.hilbert_filter`: `FFTHilbertFilter(size)`, which turns real samples
  into delayed analytic (complex) samples.
- `ft8radio.decimator`: `Decimator(in_rate, out_rate)`, a linear-interpolation
  resampler; `add(value)` returns a list of outputs (scaled by 10) each time a
  chunk of `in_rate // 20` inputs is complete, otherwise `None`.
- `ft8radio.radio_constants`: small helpers such as `khz`, `mhz`, `get_db` and
  `pi_constrain`.

```python
from ft8radio.fir_filters import LowpassFIR, DecimatingFIR

lp = LowpassFIR(63, 3000, 48000)
out = [lp.filter(complex(x, 0.0)) for x in samples]

dec = DecimatingFIR.lowpass(65, 6000, 96000, 8)
for z in samples:
    y = dec.process(z)
    if y is not None:
        handle(y)
```

## SpyServer client

- `ft8radio.spyserver_protocol`: protocol constants and enums, the
  `MessageHeader`, `DeviceInfo` and `ClientSync` records with their decoders,
  and `encode_command`, `encode_setting` and `hello_body`.
- `ft8radio.tcp_client`: `ByteBuffer`, a thread-safe bounded byte FIFO, and
  `TcpClient`, which reads and writes a socket on a background thread.
- `ft8radio.spy_handler`: `SpyHandler`, which greets the server, dispatches
  incoming messages and sends settings (gain, frequency, decimation,
  streaming on and off).
- `ft8radio.spyserver_client`: `SpyServerClient`, which connects, picks a
  decimation stage for 96 kS/s (`choose_decimation_stage`), converts the 8-bit
  samples (`convert_uint8_iq`), resamples when needed (`SampleConverter`) and
  appends complex samples to the buffer it was given.

```python
from ft8radio.spyserver_client import SpyServerClient

samples = []
client = SpyServerClient(samples, address="127.0.0.1", port=5555)
client.connect(timeout=2.0)
client.set_vfo_frequency(14_074_000)
client.set_gain(20)
...
client.close()
```

`connect` raises `TimeoutError` when the server does not answer in time,
`ConnectionError` when it cannot connect or the receiver is not an Airspy HF+,
and `ValueError` when no decimation stage reaches 96 kS/s. The output buffer
needs `extend` and `clear`; a list will do.

## What this package does not do

It is a library only: there is no command-line program and no graphical
interface. It does not decode FT8 messages, display spectra or waterfalls,
read recordings from files, or drive local SDR hardware; the only sample
source it provides is a network connection to a SpyServer.