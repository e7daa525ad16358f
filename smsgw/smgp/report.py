"""The text-form status report carried inside an SMGP Deliver message."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime, timedelta

from smsgw.smgp.header import PacketError

RPT_LEN = 10 + 3 + 3 + 10 + 10 + 7 + 3 + 20 + len(
    "id: sub: dlvrd: submit date: done date: stat: err: text:"
)

REPORT_STAT_MAP: dict[str, str] = {
    "000": "DELIVRD",
    "001": "EXPIRED",
    "002": "EXPIRED",
    "003": "UNDELIV",
    "004": "UNDELIV",
    "005": "UNDELIV",
    "006": "UNDELIV",
    "007": "EXPIRED",
    "008": "UNDELIV",
    "009": "UNDELIV",
    "010": "UNDELIV",
    "999": "UNKNOWN",
}

_ID_LEN = 10
_TXT_LEN = 20
# "id:" followed by the 20 hex digits of a 10-byte id.
_TAIL_START = 3 + 2 * _ID_LEN


def _text(data: bytes, start: int, size: int) -> str:
    return data[start:start + size].decode("utf-8", errors="replace")


@dataclass
class Report:
    msg_id: bytes = b""
    sub: str = ""
    dlvrd: str = ""
    submit_date: str = ""
    done_date: str = ""
    stat: str = ""
    err: str = ""
    txt: str = ""

    @classmethod
    def create(cls, msg_id: bytes) -> "Report":
        """Build a report for ``msg_id``; its state is picked from the current second."""
        now = datetime.now()
        code = int(time.time()) % 1000
        err = f"{code:03d}" if 1 <= code <= 10 else "000"
        return cls(
            msg_id=bytes(msg_id),
            sub="001",
            dlvrd="001",
            submit_date=now.strftime("%y%m%d%H%M"),
            done_date=(now + timedelta(minutes=1)).strftime("%y%m%d%H%M"),
            stat=REPORT_STAT_MAP[err],
            err=err,
            txt="",
        )

    def encode(self) -> bytes:
        data = bytearray(RPT_LEN)
        data[0:3] = b"id:"
        ident = bytes(self.msg_id[:_ID_LEN])
        data[3:3 + len(ident)] = ident
        start = 3 + _ID_LEN
        tail = str(self)[_TAIL_START:].encode("utf-8")[: RPT_LEN - _TXT_LEN - start]
        data[start:start + len(tail)] = tail
        return bytes(data)

    @classmethod
    def decode(cls, frame: bytes) -> "Report":
        if len(frame) < RPT_LEN:
            raise PacketError()
        data = bytes(frame)
        index = 3
        msg_id = data[index:index + _ID_LEN]
        index += _ID_LEN + 5
        sub = _text(data, index, 3)
        index += 3 + 7
        dlvrd = _text(data, index, 3)
        index += 3 + 13
        submit_date = _text(data, index, 10)
        index += 10 + 11
        done_date = _text(data, index, 10)
        index += 10 + 6
        stat = _text(data, index, 7)
        index += 7 + 5
        err = _text(data, index, 3)
        return cls(msg_id, sub, dlvrd, submit_date, done_date, stat, err, "")

    def __str__(self) -> str:
        return (
            f"id:{bytes(self.msg_id).hex()} sub:{self.sub} dlvrd:{self.dlvrd} "
            f"submit date:{self.submit_date} done date:{self.done_date} "
            f"stat:{self.stat} err:{self.err} text:{self.txt.encode('utf-8').hex()}"
        )