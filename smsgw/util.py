"""Helpers shared by the protocol codecs: strings, time stamps and long-message slicing."""

from __future__ import annotations

import os
import random
import time
from datetime import datetime

UDH_HEADER_LEN = 6
_UDH_PREFIX = (0x05, 0x00, 0x03)


def trim_str(data: bytes) -> str:
    """Return the text before the first NUL byte."""
    raw = bytes(data)
    end = raw.find(b"\x00")
    if end >= 0:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")


def format_time(moment: datetime) -> str:
    """Format a time in the SMPP 3.3 absolute form ``yyMMddHHmmss032+``."""
    return moment.strftime("%y%m%d%H%M%S") + "032+"


def to_tpudhi_slices(content: bytes, pkg_len: int) -> list[bytes]:
    """Split a message into long-message parts, each led by a 6-byte user data header.

    Content shorter than ``pkg_len`` comes back whole as the only part. Every part
    but the last is ``pkg_len`` bytes long; the last part carries the first
    ``len(content) % (pkg_len - 6)`` bytes of the content after its header.
    """
    data = bytes(content)
    if len(data) < pkg_len:
        return [data]
    body_len = pkg_len - UDH_HEADER_LEN
    if body_len <= 0:
        raise ValueError(f"package length too small for a user data header: {pkg_len}")
    parts, tail_len = divmod(len(data), body_len)
    if tail_len:
        parts += 1
    group_id = time.time_ns() & 0xFF
    slices = []
    for number in range(1, parts + 1):
        header = bytes((*_UDH_PREFIX, group_id, parts & 0xFF, number & 0xFF))
        if number < parts:
            body = data[body_len * (number - 1): body_len * number]
        else:
            body = data[:tail_len]
        slices.append(header + body)
    return slices


def ucs2_encode(text: str) -> bytes:
    """Encode text as big-endian UTF-16 without a byte order mark."""
    return text.encode("utf-16-be")


def ucs2_decode(data: bytes) -> str:
    """Decode big-endian UTF-16, stopping at the first NUL character."""
    text = bytes(data).decode("utf-16-be", errors="replace")
    return text.split("\x00", 1)[0]


def rand_num(low: int, high: int) -> int:
    """Return a random integer in ``[low, high)``."""
    return random.randrange(low, high)


def dice_check(prob: float) -> bool:
    """Return True when a roll in ``[0, 1)`` at 1/10000 steps falls below ``prob``."""
    return random.randrange(10000) / 10000.0 < prob


def save_pid(path: str | os.PathLike[str]) -> str:
    """Write the current process id into ``path`` and return it."""
    pid = str(os.getpid())
    fd = os.open(path, os.O_WRONLY | os.O_CREAT, 0o600)
    with os.fdopen(fd, "w", encoding="ascii") as handle:
        handle.write(pid)
    return pid