"""Thread-safe generators for protocol sequence numbers and message ids."""

from __future__ import annotations

import logging
import threading
import time
from datetime import datetime

_log = logging.getLogger(__name__)

_BCD_SEQ_MAX = 1_000_000

_CYCLE_SEQUENCE_MASK = 0x03FFFFFF
_CYCLE_WORKER_SHIFT = 28
_CYCLE_DATACENTER_SHIFT = 31

_SNOWFLAKE_EPOCH_MS = 1577808000000  # 2020-01-01 00:00:00 (UTC+8)
_SNOWFLAKE_TIMESTAMP_MAX = (1 << 41) - 1
_SNOWFLAKE_SEQUENCE_MASK = (1 << 12) - 1
_SNOWFLAKE_WORKER_SHIFT = 12
_SNOWFLAKE_DATACENTER_SHIFT = 19
_SNOWFLAKE_TIMESTAMP_SHIFT = 21

_SF32_SEQUENCE_MASK = 0x01FF
_SF32_WORKER_SHIFT = 9
_SF32_DATACENTER_SHIFT = 12
_SF32_TIMESTAMP_SHIFT = 14


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - (1 << 32) if value & 0x80000000 else value


def int_to_fix_str(value: int, length: int) -> str:
    """Render an integer as exactly ``length`` characters, zero padded or truncated on the left."""
    text = str(value)
    if len(text) == length:
        return text
    padded = "0" * length + text
    return padded[len(padded) - length:]


def sto_bcd(digits: str | bytes) -> bytes:
    """Pack a string of decimal digits into BCD, two digits per byte.

    Characters other than ``0``-``9`` are encoded as 9. A trailing odd digit
    is appended in the high nibble only when it is not zero.
    """
    raw = digits.encode("utf-8") if isinstance(digits, str) else bytes(digits)
    out = bytearray()
    high = 0
    for index, byte in enumerate(raw):
        nibble = min((byte - 0x30) & 0xFF, 9)
        if index & 1 == 0:
            high = nibble
        else:
            out.append(high << 4 | nibble)
            high = 0
    if high:
        out.append(high << 4)
    return bytes(out)


def bcd_to_string(bcd: bytes) -> str:
    """Unpack BCD bytes into a string of digits; nibbles above 9 read as 9."""
    return "".join(f"{min(b >> 4, 9)}{min(b & 0x0F, 9)}" for b in bcd)


class BcdSequence:
    """10-byte BCD message ids: 3 bytes gateway code, 4 bytes MMDDHHMM, 3 bytes counter.

    The counter restarts every minute and repeats after one million ids per minute.
    """

    def __init__(self, worker: str) -> None:
        if not all(ch in "0123456789" for ch in worker):
            worker = "000000"
        self._worker = sto_bcd(("000000" + worker)[-6:])
        self._timestamp = ""
        self._sequence = 0
        self._lock = threading.Lock()

    @property
    def worker(self) -> bytes:
        return self._worker

    def next_val(self) -> bytes:
        with self._lock:
            minute = datetime.now().strftime("%m%d%H%M")
            if minute == self._timestamp:
                self._sequence = (self._sequence + 1) % _BCD_SEQ_MAX
            else:
                self._sequence = 0
            self._timestamp = minute
            return (
                self._worker
                + sto_bcd(minute)
                + sto_bcd(int_to_fix_str(self._sequence, 6))
            )


class CycleSequence:
    """Cycling 32-bit sequence: datacenter bits, worker bits and a 26-bit counter."""

    def __init__(self, datacenter: int, worker: int) -> None:
        self._datacenter = datacenter
        self._worker = worker
        self._sequence = 0
        self._lock = threading.Lock()

    def next_val(self) -> int:
        with self._lock:
            self._sequence = (self._sequence + 1) & _CYCLE_SEQUENCE_MASK
            return _to_int32(
                (self._datacenter << _CYCLE_DATACENTER_SHIFT)
                | (self._worker << _CYCLE_WORKER_SHIFT)
                | self._sequence
            )

    def __str__(self) -> str:
        return f"{self._datacenter}:{self._worker}:{self._sequence}"


def _now_millis() -> int:
    return time.time_ns() // 1_000_000


class Snowflake:
    """64-bit snowflake ids: milliseconds since 2020, datacenter, worker and counter."""

    def __init__(self, datacenter_id: int, worker_id: int) -> None:
        self._datacenter_id = datacenter_id
        self._worker_id = worker_id
        self._timestamp = 0
        self._sequence = 0
        self._lock = threading.Lock()

    def next_val(self) -> int:
        with self._lock:
            now = _now_millis()
            if self._timestamp == now:
                self._sequence = (self._sequence + 1) & _SNOWFLAKE_SEQUENCE_MASK
                if self._sequence == 0:
                    while now <= self._timestamp:
                        time.sleep(1e-9)
                        now = _now_millis()
            else:
                self._sequence = 0
            elapsed = now - _SNOWFLAKE_EPOCH_MS
            if elapsed > _SNOWFLAKE_TIMESTAMP_MAX:
                _log.error("epoch must be between 0 and %d", _SNOWFLAKE_TIMESTAMP_MAX - 1)
                return 0
            self._timestamp = now
            return (
                (elapsed << _SNOWFLAKE_TIMESTAMP_SHIFT)
                | (self._datacenter_id << _SNOWFLAKE_DATACENTER_SHIFT)
                | (self._worker_id << _SNOWFLAKE_WORKER_SHIFT)
                | self._sequence
            )


def _passed_seconds() -> int:
    now = datetime.now()
    return now.hour * 3600 + now.minute * 60 + now.second


class Snowflake32:
    """32-bit ids unique within a day: seconds since midnight, datacenter, worker, 9-bit counter.

    More than 512 ids in one second block until the next second.
    """

    def __init__(self, datacenter: int, worker: int) -> None:
        self._datacenter = datacenter
        self._worker = worker
        self._seconds = 0
        self._sequence = 0
        self._lock = threading.Lock()

    def next_val(self) -> int:
        with self._lock:
            now = _passed_seconds()
            if self._seconds == now:
                self._sequence = (self._sequence + 1) & _SF32_SEQUENCE_MASK
                if self._sequence == 0:
                    while now <= self._seconds:
                        time.sleep(1e-6)
                        now = _passed_seconds()
            else:
                self._sequence = 0
            self._seconds = now
            return _to_int32(
                (self._seconds << _SF32_TIMESTAMP_SHIFT)
                | (self._datacenter << _SF32_DATACENTER_SHIFT)
                | (self._worker << _SF32_WORKER_SHIFT)
                | self._sequence
            )

    def __str__(self) -> str:
        return f"{self._seconds}:{self._datacenter}:{self._worker}:{self._sequence}"