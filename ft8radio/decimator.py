"""Sample rate reduction by linear interpolation, chunk by chunk."""

import math

_CHUNKS_PER_SECOND = 20
_OUTPUT_GAIN = 10
_OUTPUT_SLACK = 10


class Decimator:
    """Collect complex samples and resample each chunk to the output rate.

    A chunk holds ``in_rate // 20`` input samples. When a chunk is full it is
    resampled with linear interpolation, continuing smoothly from the previous
    chunk, and the outputs are returned scaled by 10.
    """

    def __init__(self, in_rate, out_rate):
        if in_rate < _CHUNKS_PER_SECOND:
            raise ValueError(f"input rate must be at least {_CHUNKS_PER_SECOND}")
        if out_rate <= 0:
            raise ValueError("output rate must be positive")
        self.in_rate = in_rate
        self.out_rate = out_rate
        self.ratio = out_rate / in_rate
        self.input_limit = in_rate // _CHUNKS_PER_SECOND
        self.output_limit = int(self.input_limit * self.ratio)
        self._chunk = []
        self._last = 0j
        self._pos = 0.0

    def add(self, value):
        """Push one sample; return the resampled chunk as a list, or None."""
        self._chunk.append(complex(value))
        if len(self._chunk) < self.input_limit:
            return None
        data = [self._last, *self._chunk]
        count = len(self._chunk)
        step = 1.0 / self.ratio
        max_out = self.output_limit + _OUTPUT_SLACK
        out = []
        pos = self._pos
        while pos < count and len(out) < max_out:
            base = math.floor(pos)
            frac = pos - base
            sample = data[base] * (1 - frac) + data[base + 1] * frac
            out.append(sample * _OUTPUT_GAIN)
            pos += step
        self._pos = max(pos - count, 0.0)
        self._last = self._chunk[-1]
        self._chunk = []
        return out