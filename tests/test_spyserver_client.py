import pytest

from ft8radio.spyserver_client import (
    SAMPLE_RATE,
    SampleConverter,
    SpyServerClient,
    choose_decimation_stage,
    convert_uint8_iq,
)
from ft8radio.spyserver_protocol import DeviceInfo, DeviceType


class FakeHandler:
    def __init__(self, address, port, raw_buffer, *, on_sync=None, on_data=None,
                 info=None, answer=True):
        self.address = address
        self.port = port
        self.raw_buffer = raw_buffer
        self.on_data = on_data
        self.info = info
        self.calls = []
        self.streaming = False
        self.closed = False
        if answer and on_sync is not None:
            on_sync(None)

    def connection_set(self):
        self.calls.append(("connection_set",))

    def device_info(self):
        return self.info

    def set_sample_rate_by_decim_stage(self, stage):
        self.calls.append(("stage", stage))
        return True

    def start_running(self):
        self.streaming = True
        self.calls.append(("start",))

    def stop_running(self):
        self.streaming = False
        self.calls.append(("stop",))

    def is_streaming(self):
        return self.streaming

    def set_iq_center_freq(self, frequency):
        self.calls.append(("freq", frequency))
        return True

    def set_gain(self, gain):
        self.calls.append(("gain", gain))
        return True

    def set_gain_mode(self, automatic, channel=0):
        self.calls.append(("gain_mode", automatic))
        return False

    def close(self):
        self.closed = True


def make_factory(info, answer=True):
    created = []

    def factory(address, port, raw_buffer, *, on_sync=None, on_data=None):
        handler = FakeHandler(address, port, raw_buffer, on_sync=on_sync,
                              on_data=on_data, info=info, answer=answer)
        created.append(handler)
        return handler

    return factory, created


def hf_info(max_rate=768000, stages=8):
    return DeviceInfo(
        device_type=DeviceType.AIRSPY_HF,
        device_serial=1234,
        maximum_sample_rate=max_rate,
        decimation_stage_count=stages,
        maximum_gain_index=5,
    )


def test_convert_uint8_iq_table_values():
    assert convert_uint8_iq(bytes([0, 128, 255, 128])) == [
        complex(-1.0, 0.0),
        complex(127 / 128, 0.0),
    ]


def test_convert_uint8_iq_ignores_odd_byte():
    assert len(convert_uint8_iq(bytes([1, 2, 3]))) == 1


def test_choose_exact_stage():
    choice = choose_decimation_stage(768000, 8, SAMPLE_RATE)
    assert choice.stage == 3
    assert choice.sample_rate == SAMPLE_RATE
    assert choice.resample_ratio == 1.0


def test_choose_next_larger_stage():
    choice = choose_decimation_stage(1000000, 4, SAMPLE_RATE)
    assert choice.stage == 3
    assert choice.sample_rate == 1000000 // 8
    assert choice.resample_ratio == pytest.approx(SAMPLE_RATE / choice.sample_rate)
    assert choice.sample_rate > SAMPLE_RATE


@pytest.mark.parametrize("max_rate, stages", [(48000, 4), (0, 4), (768000, 0)])
def test_choose_fails(max_rate, stages):
    with pytest.raises(ValueError):
        choose_decimation_stage(max_rate, stages, SAMPLE_RATE)


def test_converter_passthrough():
    conv = SampleConverter(SAMPLE_RATE, SAMPLE_RATE)
    data = [1 + 2j, 3 - 1j]
    assert conv.convert(data) == data


def test_converter_halves_ramp():
    conv = SampleConverter(2 * SAMPLE_RATE, SAMPLE_RATE)
    out = conv.convert([complex(v, 0) for v in range(193)])
    assert [z.real for z in out] == [float(2 * i) for i in range(96)]


def test_converter_keeps_constant_and_counts():
    conv = SampleConverter(2 * SAMPLE_RATE, SAMPLE_RATE)
    out = conv.convert([1 + 1j] * (193 + 2 * 192))
    assert len(out) == 3 * 96
    assert all(z == pytest.approx(1 + 1j) for z in out)


def test_converter_rejects_low_rate():
    with pytest.raises(ValueError):
        SampleConverter(500, SAMPLE_RATE)


def test_connect_selects_stage_and_streams():
    factory, created = make_factory(hf_info())
    client = SpyServerClient([], handler_factory=factory, address="10.0.0.1", port=5555)
    client.connect(timeout=0.5)
    handler = created[0]
    assert client.connected and client.running
    assert ("stage", 3) in handler.calls
    assert handler.streaming
    assert client.device_serial == 1234
    assert client.max_gain == 5
    assert (handler.address, handler.port) == ("10.0.0.1", 5555)


def test_connect_unsupported_device():
    info = DeviceInfo(device_type=DeviceType.RTLSDR, maximum_sample_rate=768000,
                      decimation_stage_count=8)
    factory, created = make_factory(info)
    client = SpyServerClient([], handler_factory=factory)
    with pytest.raises(ConnectionError):
        client.connect(timeout=0.5)
    assert created[0].closed
    assert client.handler is None


def test_connect_timeout():
    factory, created = make_factory(hf_info(), answer=False)
    client = SpyServerClient([], handler_factory=factory)
    with pytest.raises(TimeoutError):
        client.connect(timeout=0.05)
    assert created[0].closed
    assert not client.connected


def test_data_ready_converts_batches():
    out = []
    factory, created = make_factory(hf_info())
    client = SpyServerClient(out, batch_size=4, handler_factory=factory)
    client.connect(timeout=0.5)
    created[0].raw_buffer.write(bytes([128, 0] * 5))
    client.data_ready()
    assert out == [complex(0.0, -1.0)] * 4
    assert client.raw_buffer.available() == 2


def test_data_ready_resamples():
    out = []
    factory, created = make_factory(hf_info(max_rate=2 * SAMPLE_RATE, stages=1))
    client = SpyServerClient(out, batch_size=193, handler_factory=factory)
    client.connect(timeout=0.5)
    created[0].raw_buffer.write(bytes([192, 64] * 194))
    client.data_ready()
    assert len(out) == 96
    assert all(z == pytest.approx(complex(0.5, -0.5)) for z in out)


def test_data_ready_before_connect_leaves_buffer():
    out = []
    client = SpyServerClient(out, batch_size=2, handler_factory=make_factory(hf_info())[0])
    client.raw_buffer.write(bytes(20))
    client.data_ready()
    assert out == []
    assert client.raw_buffer.available() == 20


def test_set_vfo_frequency():
    factory, created = make_factory(hf_info())
    client = SpyServerClient([], gain=7, handler_factory=factory)
    client.connect(timeout=0.5)
    client.set_vfo_frequency(14074000)
    assert ("freq", 14074000) in created[0].calls
    assert ("gain", 7) in created[0].calls
    assert client.vfo_frequency == 14074000


def test_set_vfo_frequency_unconnected_is_ignored():
    client = SpyServerClient([], handler_factory=make_factory(hf_info())[0])
    client.set_vfo_frequency(7074000)
    assert client.vfo_frequency == 0


def test_set_gain_and_autogain():
    factory, created = make_factory(hf_info())
    client = SpyServerClient([], handler_factory=factory)
    client.connect(timeout=0.5)
    client.set_gain(3)
    client.set_autogain(True)
    assert client.gain == 3
    assert client.auto_gain is True
    assert ("gain", 3) in created[0].calls
    assert ("gain_mode", True) in created[0].calls


def test_reset_buffer_and_close():
    out = [1j, 2j]
    factory, created = make_factory(hf_info())
    client = SpyServerClient(out, handler_factory=factory)
    client.connect(timeout=0.5)
    client.reset_buffer()
    assert out == []
    client.close()
    assert ("stop",) in created[0].calls
    assert created[0].closed
    assert client.handler is None and not client.connected


def test_rejects_bad_batch_size():
    with pytest.raises(ValueError):
        SpyServerClient([], batch_size=0)