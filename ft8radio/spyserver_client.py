"""Client side of a SPY Server connection delivering complex samples at 96 kS/s."""

import logging
import threading
from typing import NamedTuple

import numpy as np

from .spy_handler import SpyHandler
from .spyserver_protocol import DeviceType
from .tcp_client import ByteBuffer

_log = logging.getLogger(__name__)

SAMPLE_RATE = 96000
DEFAULT_PORT = 5555
DEFAULT_GAIN = 20
_RAW_BUFFER_SIZE = 32 * 32768
_BATCH_SIZE = 4096


def convert_uint8_iq(data):
    """Convert interleaved unsigned 8-bit I/Q bytes into complex samples.

    Each byte ``b`` maps to ``(b - 128) / 128``; a trailing odd byte is ignored.
    """
    raw = np.frombuffer(bytes(data), dtype=np.uint8)
    pairs = raw[: len(raw) // 2 * 2].astype(float)
    values = (pairs - 128.0) / 128.0
    return [complex(i, q) for i, q in zip(values[0::2], values[1::2])]


class DecimationChoice(NamedTuple):
    """The selected decimation stage, its sample rate and the resample ratio."""

    stage: int
    sample_rate: int
    resample_ratio: float


def choose_decimation_stage(max_rate, stages, target=SAMPLE_RATE):
    """Pick the deepest decimation stage whose rate is not below ``target``.

    A stage delivering exactly ``target`` is taken at once. Raises ValueError
    when no stage is suitable.
    """
    if max_rate <= 0:
        raise ValueError("device reports no sample rate")
    choice = None
    for stage in range(stages):
        rate = max_rate // (1 << stage)
        if rate == target:
            return DecimationChoice(stage, rate, 1.0)
        if rate > target:
            choice = DecimationChoice(stage, rate, target / rate)
        if choice is None:
            break
    if choice is None:
        raise ValueError(
            f"no decimation stage of {max_rate} S/s reaches {target} S/s"
        )
    return choice


class SampleConverter:
    """Resample a complex stream from ``in_rate`` to ``out_rate`` in 1 ms chunks.

    Outputs are linear interpolations between neighbouring input samples;
    equal rates pass samples through unchanged.
    """

    def __init__(self, in_rate, out_rate=SAMPLE_RATE):
        if in_rate < 1000 or out_rate < 1000:
            raise ValueError("rates must be at least 1000 S/s")
        self.in_rate = in_rate
        self.out_rate = out_rate
        self._passthrough = in_rate == out_rate
        self._size = in_rate // 1000
        out_count = out_rate // 1000
        in_per_msec = float(in_rate // 1000)
        out_per_msec = out_rate / 1000.0
        positions = np.arange(out_count) * (in_per_msec / out_per_msec)
        self._base = np.floor(positions).astype(int)
        self._frac = positions - self._base
        self._buffer = np.zeros(self._size + 1, dtype=complex)
        self._index = 0

    def convert(self, data):
        """Push complex samples; return the resampled outputs now available."""
        if self._passthrough:
            return [complex(z) for z in data]
        out = []
        for z in data:
            self._buffer[self._index] = z
            self._index += 1
            if self._index > self._size:
                chunk = (
                    self._buffer[self._base + 1] * self._frac
                    + self._buffer[self._base] * (1 - self._frac)
                )
                out.extend(complex(c) for c in chunk)
                self._buffer[0] = self._buffer[self._size]
                self._index = 1
        return out


class SpyServerClient:
    """Connect to a SPY Server and feed 96 kS/s complex samples into ``out_buffer``.

    ``out_buffer`` needs ``extend`` and ``clear``; a list will do.
    """

    DEVICE_NAME = "AIRSPY HF"
    BIT_DEPTH = 8

    def __init__(
        self,
        out_buffer,
        *,
        address="127.0.0.1",
        port=DEFAULT_PORT,
        gain=DEFAULT_GAIN,
        auto_gain=False,
        batch_size=_BATCH_SIZE,
        handler_factory=SpyHandler,
    ):
        if batch_size < 1:
            raise ValueError("batch size must be positive")
        self.out_buffer = out_buffer
        self.address = address
        self.port = port
        self.gain = gain
        self.auto_gain = bool(auto_gain)
        self.batch_size = batch_size
        self.raw_buffer = ByteBuffer(_RAW_BUFFER_SIZE)
        self.handler = None
        self.connected = False
        self.running = False
        self.device_serial = None
        self.max_gain = None
        self.decimation = None
        self._handler_factory = handler_factory
        self._converter = None
        self._on_connect = threading.Event()
        self._lock = threading.Lock()
        self._last_frequency = 0

    @property
    def vfo_frequency(self):
        """The last frequency tuned to, in Hz."""
        return self._last_frequency

    @property
    def bit_depth(self):
        return self.BIT_DEPTH

    def _connect_on(self, _sync=None):
        self._on_connect.set()

    def _drop_handler(self):
        if self.handler is not None:
            self.handler.close()
        self.handler = None
        self.connected = False

    def connect(self, timeout=2.0):
        """Connect, wait up to ``timeout`` seconds for the server, and start streaming."""
        if self.connected:
            return
        self._drop_handler()
        self._on_connect.clear()
        self.handler = self._handler_factory(
            self.address,
            self.port,
            self.raw_buffer,
            on_sync=self._connect_on,
            on_data=self.data_ready,
        )
        if not self._on_connect.wait(timeout):
            self._drop_handler()
            raise TimeoutError("no answer from the server")
        self.handler.connection_set()

        info = self.handler.device_info()
        if info is None or info.device_type != DeviceType.AIRSPY_HF:
            self._drop_handler()
            raise ConnectionError("not supported device")
        self.device_serial = info.device_serial
        try:
            choice = choose_decimation_stage(
                info.maximum_sample_rate, info.decimation_stage_count, SAMPLE_RATE
            )
        except ValueError:
            self._drop_handler()
            raise
        _log.info(
            "decimation stage %d (%d S/s), resample ratio %f",
            choice.stage,
            choice.sample_rate,
            choice.resample_ratio,
        )
        self.max_gain = info.maximum_gain_index
        self.decimation = choice
        self.connected = True
        if not self.handler.set_sample_rate_by_decim_stage(choice.stage):
            raise ConnectionError(f"failed to set sample rate stage {choice.stage}")
        if choice.resample_ratio != 1.0:
            self._converter = SampleConverter(choice.sample_rate, SAMPLE_RATE)
        else:
            self._converter = None
        self.handler.start_running()
        self.running = True

    def set_vfo_frequency(self, frequency):
        """Tune the server to ``frequency`` Hz and reapply the gain."""
        if not self.connected or not self.running:
            return
        if not self.handler.set_iq_center_freq(frequency):
            _log.error("failed to set frequency")
            return
        if not self.handler.set_gain(self.gain):
            _log.error("failed to set gain")
            return
        self._last_frequency = frequency

    def set_gain(self, gain):
        """Store the gain index and pass it to the server when there is one."""
        self.gain = gain
        if self.handler is None:
            return
        if not self.handler.set_gain(gain):
            _log.error("failed to set gain")

    def set_autogain(self, enabled):
        """Store the automatic gain choice and pass it on when connected."""
        self.auto_gain = bool(enabled)
        if self.handler is not None and self.connected:
            self.handler.set_gain_mode(self.auto_gain, 0)

    def data_ready(self):
        """Convert buffered raw bytes into complex samples in ``out_buffer``."""
        with self._lock:
            chunk = 2 * self.batch_size
            while self.connected and self.raw_buffer.available() > chunk:
                raw = self.raw_buffer.read(chunk)
                if not self.running:
                    continue
                samples = convert_uint8_iq(raw)
                if self._converter is not None:
                    samples = self._converter.convert(samples)
                self.out_buffer.extend(samples)

    def reset_buffer(self):
        """Discard all samples waiting in ``out_buffer``."""
        self.out_buffer.clear()

    def close(self):
        """Stop streaming and close the connection."""
        if self.handler is not None:
            if self.connected and self.running and self.handler.is_streaming():
                self.handler.stop_running()
            self.handler.close()
        self.handler = None
        self.connected = False
        self.running = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()