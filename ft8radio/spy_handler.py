"""Protocol handler for a SPY Server connection carrying 8-bit IQ samples."""

import logging
import threading
import time

from .spyserver_protocol import (
    PROTOCOL_VERSION,
    CommandType,
    MessageHeader,
    MessageType,
    SettingType,
    StreamFormat,
    StreamType,
    decode_client_sync,
    decode_device_info,
    decode_message_header,
    encode_command,
    encode_setting,
    hello_body,
)
from .tcp_client import ByteBuffer, TcpClient

_log = logging.getLogger(__name__)

_IN_BUFFER_SIZE = 64 * 32768
_POLL_INTERVAL = 0.001


class SpyHandler:
    """Talk to a SPY Server: send commands and dispatch incoming messages.

    IQ payloads are written into ``out_buffer`` and ``on_data`` is called
    afterwards. ``on_sync`` is called with the :class:`ClientSync` record
    once the server reports its state. If no device information arrives
    within ``device_info_timeout`` seconds the reader stops.
    """

    SOFTWARE_ID = "gr-osmosdr"
    SAMPLE_RATE = 96000
    DEVICE_NAME = "spy-server-8-Bits :"

    def __init__(
        self,
        address,
        port,
        out_buffer,
        *,
        on_sync=None,
        on_data=None,
        device_info_timeout=10.0,
        command_delay=0.1,
    ):
        self.out_buffer = out_buffer
        self.on_sync = on_sync
        self.on_data = on_data
        self.command_delay = command_delay
        self.streaming_mode = StreamType.IQ
        self.gain = 0.0
        self.center_freq = 0.0
        self._device_info = None
        self._client_sync = None
        self._streaming = False
        self._lock = threading.Lock()
        self._running = threading.Event()
        self._in_buffer = ByteBuffer(_IN_BUFFER_SIZE)
        self._tcp = TcpClient(address, port, self._in_buffer)
        if not self._show_attendance():
            self._tcp.close()
            raise ConnectionError("failed to establish connection")
        self._running.set()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()
        self._timer = threading.Timer(device_info_timeout, self._no_device_info)
        self._timer.daemon = True
        self._timer.start()

    @property
    def running(self):
        """True while incoming messages are being processed."""
        return self._running.is_set()

    @property
    def sample_rate(self):
        """The sample rate delivered to the client."""
        return self.SAMPLE_RATE

    @property
    def client_sync(self):
        """The last client sync record received, or None."""
        return self._client_sync

    @property
    def is_file_input(self):
        return True

    @property
    def device_name(self):
        return self.DEVICE_NAME

    def device_info(self):
        """Return the server's device description, or None if not yet received."""
        return self._device_info

    def _send(self, raw):
        try:
            self._tcp.send_data(raw)
        except OSError:
            _log.error("failed to send command")
            return False
        if self.command_delay:
            time.sleep(self.command_delay)
        return True

    def _set_setting(self, setting, params):
        return self._send(encode_setting(setting, params))

    def _show_attendance(self):
        body = hello_body(PROTOCOL_VERSION, self.SOFTWARE_ID)
        return self._send(encode_command(CommandType.HELLO, body))

    def set_sample_rate_by_decim_stage(self, stage):
        """Select the decimation stage and the 8-bit IQ format."""
        self._set_setting(SettingType.IQ_DECIMATION, [stage])
        self._set_setting(SettingType.IQ_FORMAT, [StreamFormat.UINT8])
        return True

    def set_iq_center_freq(self, frequency):
        """Tune the IQ stream to ``frequency`` Hz."""
        self._set_setting(SettingType.IQ_FREQUENCY, [int(frequency)])
        self._set_setting(SettingType.IQ_FORMAT, [StreamFormat.UINT8])
        return True

    def set_gain_mode(self, automatic, channel=0):
        """Gain mode cannot be changed on this server; always False."""
        return False

    def set_gain(self, gain):
        """Set the receiver gain index."""
        self._set_setting(SettingType.GAIN, [int(gain)])
        return True

    def is_streaming(self):
        with self._lock:
            return self._streaming

    def start_running(self):
        """Ask the server to start streaming, unless already streaming."""
        with self._lock:
            if self._streaming:
                return
            self._streaming = True
        _log.info("starting streaming")
        self._set_setting(SettingType.STREAMING_ENABLED, [1])

    def stop_running(self):
        """Ask the server to stop streaming, if streaming."""
        with self._lock:
            if not self._streaming:
                return
            self._streaming = False
        self._set_setting(SettingType.STREAMING_ENABLED, [0])

    def connection_set(self):
        """Configure the stream once the server has synchronised."""
        self._set_setting(SettingType.STREAMING_MODE, [self.streaming_mode])
        self._set_setting(SettingType.IQ_DIGITAL_GAIN, [0])
        self._set_setting(SettingType.IQ_FORMAT, [StreamFormat.UINT8])

    def process_message(self, header, body):
        """Handle one message from the server."""
        kind = header.message_type
        if kind == MessageType.DEVICE_INFO:
            self._device_info = decode_device_info(body)
            _log.info("device info: %s", self._device_info)
        elif kind == MessageType.UINT8_IQ:
            self.out_buffer.write(body)
            if self.on_data is not None:
                self.on_data()
        elif kind == MessageType.CLIENT_SYNC:
            sync = decode_client_sync(body)
            self._client_sync = sync
            self.gain = float(sync.gain)
            self.center_freq = float(sync.iq_center_frequency)
            _log.info("client sync: %s", sync)
            if self.on_sync is not None:
                self.on_sync(sync)

    def _no_device_info(self):
        if self._device_info is None:
            self._running.clear()

    def _read_exact(self, size):
        data = bytearray()
        while len(data) < size:
            if not self._running.is_set():
                return None
            chunk = self._in_buffer.read(size - len(data))
            if chunk:
                data += chunk
            else:
                time.sleep(_POLL_INTERVAL)
        return bytes(data)

    def _run(self):
        while self._running.is_set():
            raw = self._read_exact(MessageHeader.SIZE)
            if raw is None:
                break
            header = decode_message_header(raw)
            body = self._read_exact(header.body_size)
            if body is None:
                break
            try:
                self.process_message(header, body)
            except ValueError as exc:
                _log.warning("malformed message: %s", exc)

    def close(self):
        """Stop processing messages and close the connection."""
        self._running.clear()
        self._timer.cancel()
        if self._thread is not threading.current_thread():
            self._thread.join()
        self._tcp.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()