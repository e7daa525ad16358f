"""CMPP message header, command ids and the codec's shared configuration."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Protocol

from smsgw.config import YamlConfig

HEAD_LENGTH = 12

CMPP_CONNECT = 0x00000001
CMPP_CONNECT_RESP = 0x80000001
CMPP_TERMINATE = 0x00000002
CMPP_TERMINATE_RESP = 0x80000002
CMPP_SUBMIT = 0x00000004
CMPP_SUBMIT_RESP = 0x80000004
CMPP_DELIVER = 0x00000005
CMPP_DELIVER_RESP = 0x80000005
CMPP_ACTIVE_TEST = 0x00000008
CMPP_ACTIVE_TEST_RESP = 0x80000008

COMMAND_MAP: dict[int, str] = {
    CMPP_CONNECT: "CMPP_CONNECT",
    CMPP_CONNECT_RESP: "CMPP_CONNECT_RESP",
    CMPP_TERMINATE: "CMPP_TERMINATE",
    CMPP_TERMINATE_RESP: "CMPP_TERMINATE_RESP",
    CMPP_SUBMIT: "CMPP_SUBMIT",
    CMPP_SUBMIT_RESP: "CMPP_SUBMIT_RESP",
    CMPP_DELIVER: "CMPP_DELIVER",
    CMPP_DELIVER_RESP: "CMPP_DELIVER_RESP",
    CMPP_ACTIVE_TEST: "CMPP_ACTIVE_TEST",
    CMPP_ACTIVE_TEST_RESP: "CMPP_ACTIVE_TEST_RESP",
}

_HEADER = struct.Struct(">III")


class PacketError(ValueError):
    """A frame is malformed or of the wrong kind."""

    def __init__(self, message: str = "error packet") -> None:
        super().__init__(message)


class Sequence32(Protocol):
    def next_val(self) -> int: ...


class Sequence64(Protocol):
    def next_val(self) -> int: ...


@dataclass
class Context:
    """Configuration and sequence generators used when building CMPP messages."""

    conf: YamlConfig
    seq32: Sequence32
    seq64: Sequence64
    report_seq: Sequence32

    def next_seq32(self) -> int:
        return self.seq32.next_val() & 0xFFFFFFFF

    def next_seq64(self) -> int:
        return self.seq64.next_val() & 0xFFFFFFFFFFFFFFFF

    def next_report_seq(self) -> int:
        return self.report_seq.next_val() & 0xFFFFFFFF


_context: Context | None = None


def configure(conf: YamlConfig, seq32: Sequence32, seq64: Sequence64, report_seq: Sequence32) -> Context:
    """Install the configuration and sequences the CMPP codec uses."""
    global _context
    _context = Context(conf, seq32, seq64, report_seq)
    return _context


def context() -> Context:
    """Return the installed codec context."""
    if _context is None:
        raise RuntimeError("the CMPP codec is not configured")
    return _context


def is_v3() -> bool:
    """True when the configured protocol version is 3.x."""
    return context().conf.get_int("version") & 0xF0 == 0x30


@dataclass
class MessageHeader:
    total_length: int = HEAD_LENGTH
    command_id: int = 0
    sequence_id: int = 0

    def encode(self) -> bytearray:
        """Return a zero-filled frame of ``total_length`` bytes led by the header."""
        if self.total_length < HEAD_LENGTH:
            self.total_length = HEAD_LENGTH
        frame = bytearray(self.total_length)
        _HEADER.pack_into(frame, 0, self.total_length, self.command_id, self.sequence_id)
        return frame

    @classmethod
    def decode(cls, frame: bytes) -> "MessageHeader":
        if len(frame) < HEAD_LENGTH:
            raise PacketError()
        return cls(*_HEADER.unpack_from(bytes(frame[:HEAD_LENGTH])))

    def __str__(self) -> str:
        return (
            f"{{ PacketLength: {self.total_length}, "
            f"RequestId: {COMMAND_MAP.get(self.command_id, '')}, "
            f"SequenceId: {self.sequence_id} }}"
        )