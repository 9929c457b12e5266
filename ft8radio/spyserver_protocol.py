"""Structures and constants of the SPY Server network protocol."""

import enum
import struct
from dataclasses import astuple, dataclass

PROTOCOL_VERSION = (2 << 24) | (0 << 16) | 1700

MAX_COMMAND_BODY_SIZE = 256
MAX_MESSAGE_BODY_SIZE = 1 << 20
MAX_DISPLAY_PIXELS = 1 << 15
MIN_DISPLAY_PIXELS = 100
MAX_FFT_DB_RANGE = 150
MIN_FFT_DB_RANGE = 10
MAX_FFT_DB_OFFSET = 100

_COMMAND_HEADER = struct.Struct("<II")


class DeviceType(enum.IntEnum):
    INVALID = 0
    AIRSPY_ONE = 1
    AIRSPY_HF = 2
    RTLSDR = 3


class CommandType(enum.IntEnum):
    HELLO = 0
    GET_SETTING = 1
    SET_SETTING = 2
    PING = 3


class SettingType(enum.IntEnum):
    STREAMING_MODE = 0
    STREAMING_ENABLED = 1
    GAIN = 2
    IQ_FORMAT = 100
    IQ_FREQUENCY = 101
    IQ_DECIMATION = 102
    IQ_DIGITAL_GAIN = 103
    FFT_FORMAT = 200
    FFT_FREQUENCY = 201
    FFT_DECIMATION = 202
    FFT_DB_OFFSET = 203
    FFT_DB_RANGE = 204
    FFT_DISPLAY_PIXELS = 205


class StreamType(enum.IntEnum):
    STATUS = 0
    IQ = 1
    AF = 2
    FFT = 4


class StreamingMode(enum.IntEnum):
    IQ_ONLY = StreamType.IQ
    AF_ONLY = StreamType.AF
    FFT_ONLY = StreamType.FFT
    FFT_IQ = StreamType.FFT | StreamType.IQ
    FFT_AF = StreamType.FFT | StreamType.AF


class StreamFormat(enum.IntEnum):
    INVALID = 0
    UINT8 = 1
    INT16 = 2
    INT24 = 3
    FLOAT = 4
    DINT4 = 5


class MessageType(enum.IntEnum):
    DEVICE_INFO = 0
    CLIENT_SYNC = 1
    PONG = 2
    READ_SETTING = 3
    UINT8_IQ = 100
    INT16_IQ = 101
    INT24_IQ = 102
    FLOAT_IQ = 103
    UINT8_AF = 200
    INT16_AF = 201
    INT24_AF = 202
    FLOAT_AF = 203
    DINT4_FFT = 300
    UINT8_FFT = 301


@dataclass(frozen=True)
class MessageHeader:
    """Header preceding every message sent by the server."""

    protocol_id: int
    message_type: int
    stream_type: int
    sequence_number: int
    body_size: int

    SIZE = 20

    def encode(self):
        """Return the header in wire format."""
        return struct.pack("<5I", *astuple(self))


@dataclass(frozen=True)
class DeviceInfo:
    """Description of the receiver behind the server."""

    device_type: int = 0
    device_serial: int = 0
    maximum_sample_rate: int = 0
    maximum_bandwidth: int = 0
    decimation_stage_count: int = 0
    gain_stage_count: int = 0
    maximum_gain_index: int = 0
    minimum_frequency: int = 0
    maximum_frequency: int = 0
    resolution: int = 0
    minimum_iq_decimation: int = 0
    forced_iq_format: int = 0

    SIZE = 48

    def encode(self):
        """Return the record in wire format."""
        return struct.pack("<12I", *astuple(self))


@dataclass(frozen=True)
class ClientSync:
    """Server state as reported to the client."""

    can_control: int = 0
    gain: int = 0
    device_center_frequency: int = 0
    iq_center_frequency: int = 0
    fft_center_frequency: int = 0
    minimum_iq_center_frequency: int = 0
    maximum_iq_center_frequency: int = 0
    minimum_fft_center_frequency: int = 0
    maximum_fft_center_frequency: int = 0

    SIZE = 36

    def encode(self):
        """Return the record in wire format."""
        return struct.pack("<9I", *astuple(self))


def encode_command(command, body=b""):
    """Return a command header followed by ``body``."""
    body = bytes(body)
    return _COMMAND_HEADER.pack(int(command), len(body)) + body


def encode_setting(setting, params):
    """Return a complete set-setting command for ``setting`` with ``params``.

    With no parameters the command carries an empty body.
    """
    params = list(params)
    if params:
        body = struct.pack(f"<I{len(params)}I", int(setting), *map(int, params))
    else:
        body = b""
    return encode_command(CommandType.SET_SETTING, body)


def hello_body(protocol_version, software_id):
    """Return the body of the hello command."""
    if isinstance(software_id, str):
        software_id = software_id.encode("latin-1")
    return struct.pack("<I", protocol_version) + bytes(software_id)


def _decode(cls, fmt, data):
    data = bytes(data)
    if len(data) < cls.SIZE:
        raise ValueError(
            f"{cls.__name__} needs {cls.SIZE} bytes, got {len(data)}"
        )
    return cls(*struct.unpack_from(fmt, data))


def decode_message_header(data):
    """Parse a message header from the start of ``data``."""
    return _decode(MessageHeader, "<5I", data)


def decode_device_info(data):
    """Parse a device info record from the start of ``data``."""
    return _decode(DeviceInfo, "<12I", data)


def decode_client_sync(data):
    """Parse a client sync record from the start of ``data``."""
    return _decode(ClientSync, "<9I", data)