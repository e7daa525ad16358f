"""SMGP Submit and Submit_Resp messages and their optional settings."""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from smsgw.smgp.header import (
    CMD_SUBMIT,
    CMD_SUBMIT_RESP,
    HEAD_LENGTH,
    PK_NUMBER,
    PK_TOTAL,
    STAT_MAP,
    TP_PID,
    TP_UDHI,
    MessageHeader,
    PacketError,
    context,
    gb_decode,
    gb_encode,
)
from smsgw.tlv import TlvError, TlvList, read
from smsgw.util import format_time, to_tpudhi_slices, trim_str

_log = logging.getLogger(__name__)

MT_BASE_LEN = 126
RESP_LEN = 26
TERM_ID_LEN = 21
MSG_FORMAT_GB = 15
_UDH_PREFIX = b"\x05\x00\x03"
_TLV_MIN = 5


def _fixed(value: str | bytes, size: int) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return raw[:size].ljust(size, b"\x00")


def _u8(*values: int) -> bytes:
    return bytes(v & 0xFF for v in values)


class _Reader:
    """Sequential reader over a frame body; short frames raise PacketError."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0

    def take(self, size: int) -> bytes:
        end = self._pos + size
        if size < 0 or end > len(self._data):
            raise PacketError()
        chunk = self._data[self._pos:end]
        self._pos = end
        return chunk

    def byte(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def text(self, size: int) -> str:
        return trim_str(self.take(size))

    def rest(self) -> bytes:
        return self._data[self._pos:]


@dataclass
class MtOptions:
    """Submit settings; zero and empty values fall back to the configuration."""

    need_report: int = 0
    priority: int = 0
    service_id: str = ""
    at_time: datetime | None = None
    valid_duration: timedelta = timedelta(0)
    src_term_id: str = ""


@dataclass
class SubmitResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(RESP_LEN, CMD_SUBMIT_RESP, 0)
    )
    msg_id: bytes = b""
    status: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        body = _fixed(self.msg_id, 10) + struct.pack(">I", self.status & 0xFFFFFFFF)
        if len(body) > len(frame) - HEAD_LENGTH:
            raise PacketError("message body exceeds the packet length")
        frame[HEAD_LENGTH:HEAD_LENGTH + len(body)] = body
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "SubmitResp":
        if (
            header is None
            or header.request_id != CMD_SUBMIT_RESP
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
class Submit:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(MT_BASE_LEN, CMD_SUBMIT, 0)
    )
    msg_type: int = 0
    need_report: int = 0
    priority: int = 0
    service_id: str = ""
    fee_type: str = ""
    fee_code: str = ""
    fixed_fee: str = ""
    msg_format: int = 0
    valid_time: str = ""
    at_time: str = ""
    src_term_id: str = ""
    charge_term_id: str = ""
    dest_term_id_count: int = 0
    dest_term_id: list[str] = field(default_factory=list)
    msg_length: int = 0
    msg_content: str = ""
    msg_bytes: bytes = b""
    reserve: str = ""
    tlv_list: TlvList | None = None

    def apply_options(self, options: MtOptions) -> None:
        """Fill the optional fields from ``options``, falling back to the configuration."""
        conf = context().conf
        self.need_report = options.need_report or conf.get_int("need-report") & 0xFF
        self.priority = options.priority or conf.get_int("Priority") & 0xFF
        self.service_id = options.service_id or conf.get_string("service-id")
        self.at_time = format_time(options.at_time if options.at_time is not None else datetime.now())
        duration = options.valid_duration or conf.get_duration("default-valid-duration")
        self.valid_time = format_time(datetime.now() + duration)
        self.src_term_id = conf.get_string("sms-display-no") + options.src_term_id

    def encode(self) -> bytes:
        if len(self.dest_term_id) != self.dest_term_id_count:
            raise PacketError("destination count does not match the destination numbers")
        frame = self.header.encode()
        body = (
            _u8(self.msg_type, self.need_report, self.priority)
            + _fixed(self.service_id, 10)
            + _fixed(self.fee_type, 2)
            + _fixed(self.fee_code, 6)
            + _fixed(self.fixed_fee, 6)
            + _u8(self.msg_format)
            + _fixed(self.valid_time, 17)
            + _fixed(self.at_time, 17)
            + _fixed(self.src_term_id, TERM_ID_LEN)
            + _fixed(self.charge_term_id, TERM_ID_LEN)
            + _u8(self.dest_term_id_count)
            + b"".join(_fixed(tid, TERM_ID_LEN) for tid in self.dest_term_id)
            + _u8(self.msg_length)
            + _fixed(self.msg_bytes, self.msg_length & 0xFF)
            + _fixed(self.reserve, 8)
        )
        room = len(frame) - HEAD_LENGTH
        if len(body) > room:
            raise PacketError("message body exceeds the packet length")
        if self.tlv_list is not None:
            buffer = io.BytesIO()
            self.tlv_list.write(buffer)
            body += buffer.getvalue()
            body = body[:room]
        frame[HEAD_LENGTH:HEAD_LENGTH + len(body)] = body
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Submit":
        if (
            header is None
            or header.request_id != CMD_SUBMIT
            or len(frame) < header.packet_length - HEAD_LENGTH
        ):
            raise PacketError()
        reader = _Reader(frame)
        sub = cls(header=header)
        sub.msg_type = reader.byte()
        sub.need_report = reader.byte()
        sub.priority = reader.byte()
        sub.service_id = reader.text(10)
        sub.fee_type = reader.text(2)
        sub.fee_code = reader.text(6)
        sub.fixed_fee = reader.text(6)
        sub.msg_format = reader.byte()
        sub.valid_time = reader.text(17)
        sub.at_time = reader.text(17)
        sub.src_term_id = reader.text(TERM_ID_LEN)
        sub.charge_term_id = reader.text(TERM_ID_LEN)
        sub.dest_term_id_count = reader.byte()
        sub.dest_term_id = [reader.text(TERM_ID_LEN) for _ in range(sub.dest_term_id_count)]
        sub.msg_length = reader.byte()
        content = reader.take(sub.msg_length)
        sub.msg_bytes = content
        if content[:3] == _UDH_PREFIX and len(content) >= 6:
            content = content[6:]
        sub.msg_content = gb_decode(content)
        sub.reserve = reader.text(8)
        rest = reader.rest()
        if len(rest) >= _TLV_MIN:
            try:
                sub.tlv_list = read(io.BytesIO(rest))
            except TlvError as exc:
                _log.warning("bad optional parameters in submit: %s", exc)
        return sub

    def to_response(self, code: int) -> SubmitResp:
        header = replace(self.header, request_id=CMD_SUBMIT_RESP, packet_length=RESP_LEN)
        return SubmitResp(header, context().next_seq80(), code)

    def __str__(self) -> str:
        shown = bytes(self.msg_bytes[:6]) if self.msg_length > 6 else bytes(self.msg_bytes)
        return (
            f"{{ header: {self.header}, msgType: {self.msg_type}, NeedReport: {self.need_report}, "
            f"Priority: {self.priority}, ServiceID: {self.service_id}, feeType: {self.fee_type}, "
            f"feeCode: {self.fee_code}, fixedFee: {self.fixed_fee}, msgFormat: {self.msg_format}, "
            f"validTime: {self.valid_time}, AtTime: {self.at_time}, SrcTermID: {self.src_term_id}, "
            f"chargeTermID: {self.charge_term_id}, destTermIDCount: {self.dest_term_id_count}, "
            f"destTermID: {self.dest_term_id}, msgLength: {self.msg_length}, "
            f"msgContent: 0x{shown.hex()}..., reserve: {self.reserve}, tlvList: {self.tlv_list} }}"
        )


def new_submit(phones: list[str], content: str, options: MtOptions | None = None) -> list[Submit]:
    """Build one submit per long-message part of ``content``; empty if it cannot be GB-encoded."""
    ctx = context()
    conf = ctx.conf
    mt = Submit(header=MessageHeader(MT_BASE_LEN, CMD_SUBMIT, ctx.next_seq32()))
    mt.apply_options(options if options is not None else MtOptions())
    mt.msg_type = 6
    mt.fee_type = conf.get_string("fee-type")
    mt.fee_code = conf.get_string("fee-code")
    mt.charge_term_id = conf.get_string("charge-term-id")
    mt.fixed_fee = conf.get_string("fixed-fee")
    mt.dest_term_id = list(phones)
    mt.dest_term_id_count = len(phones) & 0xFF
    mt.msg_format = MSG_FORMAT_GB
    mt.msg_content = content
    try:
        data = gb_encode(content)
    except UnicodeEncodeError:
        return []
    base = MT_BASE_LEN + len(mt.dest_term_id) * TERM_ID_LEN
    slices = to_tpudhi_slices(data, 140)
    if len(slices) == 1:
        mt.msg_bytes = slices[0]
        mt.msg_length = len(slices[0]) & 0xFF
        mt.header.packet_length = base + mt.msg_length
        return [mt]

    messages = []
    for index, part in enumerate(slices):
        header = replace(mt.header)
        if index != 0:
            header.sequence_id = ctx.next_seq32()
        tlvs = TlvList()
        tlvs.add(TP_PID, b"\x01")
        tlvs.add(TP_UDHI, b"\x01")
        tlvs.add(PK_TOTAL, bytes([len(slices) & 0xFF]))
        tlvs.add(PK_NUMBER, bytes([index & 0xFF]))
        length = len(part) & 0xFF
        header.packet_length = base + length + 4 * _TLV_MIN
        messages.append(
            replace(
                mt,
                header=header,
                dest_term_id=list(mt.dest_term_id),
                msg_length=length,
                msg_bytes=part,
                tlv_list=tlvs,
            )
        )
    return messages