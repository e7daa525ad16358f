"""The 60-byte status report carried inside a CMPP_DELIVER message."""

from __future__ import annotations

import struct
from dataclasses import dataclass

from smsgw.cmpp.header import PacketError, context
from smsgw.util import trim_str

REPORT_LEN = 60

_STAT_BY_CODE = {
    99: "REJECTD",
    88: "UNKNOWN",
    77: "ACCEPTD",
    66: "UNDELIV",
    55: "DELETED",
    44: "EXPIRED",
    33: "MA:0000",
    22: "MB:0000",
    11: "CA:0000",
    10: "CB:0000",
}
_DEFAULT_STAT = "DELIVRD"


def _put(frame: bytearray, offset: int, size: int, text: str) -> None:
    chunk = text.encode("utf-8")[:size]
    frame[offset:offset + len(chunk)] = chunk


@dataclass
class Report:
    msg_id: int = 0
    stat: str = ""
    submit_time: str = ""
    done_time: str = ""
    dest_terminal_id: str = ""
    smsc_sequence: int = 0

    @classmethod
    def create(cls, msg_id: int, dest_terminal_id: str, submit_time: str, done_time: str) -> "Report":
        """Build a report whose state is picked from the next report sequence number."""
        smsc_sequence = context().next_report_seq()
        stat = _STAT_BY_CODE.get((smsc_sequence >> 14) % 100, _DEFAULT_STAT)
        return cls(msg_id, stat, submit_time, done_time, dest_terminal_id, smsc_sequence)

    def encode(self) -> bytes:
        frame = bytearray(REPORT_LEN)
        struct.pack_into(">Q", frame, 0, self.msg_id & 0xFFFFFFFFFFFFFFFF)
        _put(frame, 8, 7, self.stat)
        _put(frame, 15, 10, self.submit_time)
        _put(frame, 25, 10, self.done_time)
        _put(frame, 35, 21, self.dest_terminal_id)
        struct.pack_into(">I", frame, 56, self.smsc_sequence & 0xFFFFFFFF)
        return bytes(frame)

    @classmethod
    def decode(cls, frame: bytes) -> "Report":
        if len(frame) < REPORT_LEN:
            raise PacketError()
        data = bytes(frame)
        return cls(
            msg_id=struct.unpack_from(">Q", data, 0)[0],
            stat=trim_str(data[8:15]),
            submit_time=trim_str(data[15:25]),
            done_time=trim_str(data[25:35]),
            dest_terminal_id=trim_str(data[35:56]),
            smsc_sequence=struct.unpack_from(">I", data, 56)[0],
        )

    def __str__(self) -> str:
        return (
            f"{{ msgId: {self.msg_id}, stat: {self.stat}, submitTime: {self.submit_time}, "
            f"doneTime: {self.done_time}, destTerminalId: {self.dest_terminal_id}, "
            f"smscSequence: {self.smsc_sequence} }}"
        )