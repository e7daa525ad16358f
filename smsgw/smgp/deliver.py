"""SMGP Deliver and Deliver_Resp: mobile-originated messages and status reports."""

from __future__ import annotations

import struct
from dataclasses import dataclass, field, replace
from datetime import datetime

from smsgw.smgp.header import (
    CMD_DELIVER,
    CMD_DELIVER_RESP,
    HEAD_LENGTH,
    STAT_MAP,
    MessageHeader,
    PacketError,
    context,
    gb_decode,
    gb_encode,
)
from smsgw.smgp.report import RPT_LEN, Report
from smsgw.smgp.submit import Submit, _Reader
from smsgw.tlv import TlvList

DELIVER_BASE_LEN = 89
RESP_LEN = 26
REPORT_MSG_LEN = 115
MAX_MO_CHARS = 70


def _fixed(value: str | bytes, size: int) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return raw[:size].ljust(size, b"\x00")


def _place(frame: bytearray, body: bytes) -> bytes:
    if len(body) > len(frame) - HEAD_LENGTH:
        raise PacketError("message body exceeds the packet length")
    frame[HEAD_LENGTH:HEAD_LENGTH + len(body)] = body
    return bytes(frame)


@dataclass
class DeliverResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(RESP_LEN, CMD_DELIVER_RESP, 0)
    )
    msg_id: bytes = b""
    status: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        return _place(frame, _fixed(self.msg_id, 10) + struct.pack(">I", self.status & 0xFFFFFFFF))

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "DeliverResp":
        if (
            header is None
            or header.request_id != CMD_DELIVER_RESP
            or len(frame) < header.packet_length - HEAD_LENGTH
        ):
            raise PacketError()
        reader = _Reader(frame)
        msg_id = reader.take(10)
        return cls(header, msg_id, reader.u32())

    def __str__(self) -> str:
        return (
            f"{{ header: {self.header}, msgId: {bytes(self.msg_id).hex()}, "
            f"status: {{{self.status}:{STAT_MAP.get(self.status, '')}}} }}"
        )


@dataclass
class Deliver:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(DELIVER_BASE_LEN, CMD_DELIVER, 0)
    )
    msg_id: bytes = b""
    report_flag: int = 0
    msg_format: int = 0
    recv_time: str = ""
    src_term_id: str = ""
    dest_term_id: str = ""
    msg_length: int = 0
    msg_content: str = ""
    msg_bytes: bytes = b""
    report: Report | None = None
    reserve: str = ""
    tlv_list: TlvList | None = None

    def is_report(self) -> bool:
        return self.report_flag == 1

    def encode(self) -> bytes:
        frame = self.header.encode()
        if self.is_report() and self.report is not None:
            payload = self.report.encode()
        else:
            payload = _fixed(self.msg_bytes, self.msg_length & 0xFF)
        body = (
            _fixed(self.msg_id, 10)
            + bytes((self.report_flag & 0xFF, self.msg_format & 0xFF))
            + _fixed(self.recv_time, 14)
            + _fixed(self.src_term_id, 21)
            + _fixed(self.dest_term_id, 21)
            + bytes((self.msg_length & 0xFF,))
            + payload
            + _fixed(self.reserve, 8)
        )
        return _place(frame, body)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Deliver":
        if (
            header is None
            or header.request_id != CMD_DELIVER
            or len(frame) < header.packet_length - HEAD_LENGTH
        ):
            raise PacketError()
        reader = _Reader(frame)
        dlv = cls(header=header)
        dlv.msg_id = reader.take(10)
        dlv.report_flag = reader.byte()
        dlv.msg_format = reader.byte()
        dlv.recv_time = reader.text(14)
        dlv.src_term_id = reader.text(21)
        dlv.dest_term_id = reader.text(21)
        dlv.msg_length = reader.byte()
        if dlv.is_report():
            dlv.report = Report.decode(reader.take(RPT_LEN))
        else:
            dlv.msg_bytes = reader.take(dlv.msg_length)
            dlv.msg_content = gb_decode(dlv.msg_bytes)
        return dlv

    def to_response(self, code: int) -> DeliverResp:
        header = replace(self.header, request_id=CMD_DELIVER_RESP, packet_length=RESP_LEN)
        return DeliverResp(header, context().next_seq80(), code)

    def __str__(self) -> str:
        if self.is_report():
            content = str(self.report)
        else:
            content = self.msg_content.replace("\n", " ")
        return (
            f"{{ header: {self.header}, msgId: {bytes(self.msg_id).hex()}, "
            f"isReport: {self.report_flag}, msgFormat: {self.msg_format}, "
            f"recvTime: {self.recv_time}, SrcTermID: {self.src_term_id}, "
            f"destTermID: {self.dest_term_id}, msgLength: {self.msg_length}, "
            f'msgContent: "{content}", reserve: {self.reserve}, tlv: {self.tlv_list} }}'
        )


def new_deliver(src_no: str, dest_no: str, txt: str) -> Deliver:
    """Build a mobile-originated message; text is cut to 70 characters."""
    ctx = context()
    text = txt[:MAX_MO_CHARS]
    data = gb_encode(text)
    length = len(data) & 0xFF
    return Deliver(
        header=MessageHeader(DELIVER_BASE_LEN + length, CMD_DELIVER, ctx.next_seq32()),
        msg_id=ctx.next_seq80(),
        report_flag=0,
        msg_format=15,
        recv_time=datetime.now().strftime("%Y%m%d%H%M%S"),
        src_term_id=src_no,
        dest_term_id=ctx.conf.get_string("sms-display-no") + dest_no,
        msg_length=length,
        msg_content=text,
        msg_bytes=data,
    )


def new_delivery_report(mt: Submit, msg_id: bytes) -> Deliver:
    """Build the status report for submit ``mt`` that was answered with ``msg_id``."""
    ctx = context()
    header = MessageHeader(DELIVER_BASE_LEN + RPT_LEN, CMD_DELIVER, ctx.next_seq32())
    report = Report.create(msg_id)
    return Deliver(
        header=header,
        msg_id=ctx.next_seq80(),
        report_flag=1,
        msg_format=0,
        recv_time=datetime.now().strftime("%Y%m%d%H%M%S"),
        src_term_id=mt.dest_term_id[0],
        dest_term_id=mt.src_term_id,
        msg_length=REPORT_MSG_LEN,
        report=report,
    )