"""TCP connection that buffers traffic in both directions on a reader thread."""

import select
import socket
import threading

_RECEIVE_BUFFER = 8 * 32768
_POLL_INTERVAL = 0.001
_READ_CHUNK = 1 << 20


class ByteBuffer:
    """Thread-safe bounded FIFO of bytes."""

    def __init__(self, capacity=32768):
        if capacity < 1:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._data = bytearray()
        self._lock = threading.Lock()

    def write(self, data):
        """Append as much of ``data`` as fits; return the number of bytes stored."""
        with self._lock:
            room = self.capacity - len(self._data)
            chunk = bytes(data[:room])
            self._data += chunk
            return len(chunk)

    def read(self, size):
        """Remove and return up to ``size`` bytes."""
        with self._lock:
            chunk = bytes(self._data[:size])
            del self._data[:size]
            return chunk

    def available(self):
        """Number of bytes ready to be read."""
        with self._lock:
            return len(self._data)

    def flush(self):
        """Discard all buffered bytes."""
        with self._lock:
            self._data.clear()


class TcpClient:
    """Connect to ``address``:``port`` and shuttle data through byte buffers.

    Received bytes are written into ``in_buffer``; bytes given to
    :meth:`send_data` are sent whenever the socket is idle.
    """

    def __init__(self, address, port, in_buffer):
        self.address = address
        self.port = port
        self.in_buffer = in_buffer
        self._out_buffer = ByteBuffer(32768)
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, _RECEIVE_BUFFER)
        try:
            sock.connect((address, port))
        except OSError as exc:
            sock.close()
            raise ConnectionError(f"cannot connect to {address}:{port}") from exc
        self._sock = sock
        self._running = threading.Event()
        self._running.set()
        self._thread = threading.Thread(target=self._run, daemon=True)
        self._thread.start()

    @property
    def connected(self):
        """True while the reader thread is active."""
        return self._running.is_set()

    def send_data(self, data):
        """Queue ``data`` for sending."""
        self._out_buffer.write(data)

    def _run(self):
        while self._running.is_set():
            try:
                readable, _, _ = select.select([self._sock], [], [], _POLL_INTERVAL)
                if not readable:
                    amount = self._out_buffer.available()
                    if amount > 0:
                        self._sock.sendall(self._out_buffer.read(amount))
                    continue
                data = self._sock.recv(_READ_CHUNK)
            except OSError:
                break
            if not data:
                break
            self.in_buffer.write(data)
        self._running.clear()

    def close(self):
        """Stop the reader thread and close the socket."""
        self._running.clear()
        if self._thread is not threading.current_thread():
            self._thread.join()
        self._sock.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()