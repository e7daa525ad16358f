"""CMPP_SUBMIT and CMPP_DELIVER messages with their replies."""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta

from smsgw.cmpp.header import (
    CMPP_DELIVER,
    CMPP_DELIVER_RESP,
    CMPP_SUBMIT,
    CMPP_SUBMIT_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    context,
    is_v3,
)
from smsgw.cmpp.options import UNSET, MtOptions, Option, load_options
from smsgw.cmpp.report import REPORT_LEN, Report
from smsgw.util import format_time, to_tpudhi_slices, trim_str, ucs2_decode, ucs2_encode

_log = logging.getLogger(__name__)

SUBMIT_BASE_LEN_V2 = 138
SUBMIT_BASE_LEN_V3 = 163
DELIVERY_BASE_LEN_V2 = 85
DELIVERY_BASE_LEN_V3 = 109
RESP_LEN_V2 = HEAD_LENGTH + 9
RESP_LEN_V3 = HEAD_LENGTH + 12

FMT_ASCII = 0
FMT_UCS2 = 8
_UDH_PREFIX = b"\x05\x00\x03"

SUBMIT_RESULT_MAP: dict[int, str] = {
    0: "正确",
    1: "消息结构错",
    2: "命令字错",
    3: "消息序号重复",
    4: "消息长度错",
    5: "资费代码错",
    6: "超过最大信息长",
    7: "业务代码错",
    8: "流量控制错",
    9: "本网关不负责服务此计费号码",
    10: "Src_Id 错误",
    11: "Msg_src 错误",
    12: "Fee_terminal_Id 错误",
    13: "Dest_terminal_Id 错误",
}

DELIVERY_RESULT_MAP: dict[int, str] = {
    0: "正确",
    1: "消息结构错",
    2: "命令字错",
    3: "消息序号重复",
    4: "消息长度错",
    5: "资费代码错",
    6: "超过最大信息长",
    7: "业务代码错",
    8: "流量控制错",
    9: "未知错误",
}


def _fixed(value: str | bytes, size: int) -> bytes:
    raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
    return raw[:size].ljust(size, b"\x00")


def _u8(*values: int) -> bytes:
    return bytes(v & 0xFF for v in values)


def _place(frame: bytearray, body: bytes) -> bytes:
    if len(body) > len(frame) - HEAD_LENGTH:
        raise PacketError("message body exceeds the total length")
    frame[HEAD_LENGTH:HEAD_LENGTH + len(body)] = body
    return bytes(frame)


def _terminal_id_len(v3: bool) -> int:
    return 32 if v3 else 21


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

    def skip(self, size: int) -> None:
        self.take(size)

    def byte(self) -> int:
        return self.take(1)[0]

    def u32(self) -> int:
        return struct.unpack(">I", self.take(4))[0]

    def u64(self) -> int:
        return struct.unpack(">Q", self.take(8))[0]

    def text(self, size: int) -> str:
        return trim_str(self.take(size))


def msg_fmt(content: str) -> int:
    """0 (ASCII) for single-byte text, 8 (UCS-2) when multi-byte characters occur."""
    encoded = content.encode("utf-8")
    if len(encoded) < 2:
        return FMT_ASCII
    return FMT_ASCII if len(encoded) == len(content) else FMT_UCS2


def msg_slices(fmt: int, content: str) -> list[bytes]:
    """Encode a message for the given format and split it into long-message parts."""
    if fmt == FMT_UCS2:
        return to_tpudhi_slices(ucs2_encode(content), 140)
    return to_tpudhi_slices(content.encode("utf-8"), 160)


@dataclass
class SubmitResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(RESP_LEN_V2, CMPP_SUBMIT_RESP, 0)
    )
    msg_id: int = 0
    result: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        body = struct.pack(">Q", self.msg_id & 0xFFFFFFFFFFFFFFFF)
        if is_v3():
            body += struct.pack(">I", self.result & 0xFFFFFFFF)
        else:
            body += _u8(self.result)
        return _place(frame, body)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "SubmitResp":
        if (
            header is None
            or header.command_id != CMPP_SUBMIT_RESP
            or len(frame) < header.total_length - HEAD_LENGTH
        ):
            raise PacketError()
        reader = _Reader(frame)
        msg_id = reader.u64()
        result = reader.u32() if is_v3() else reader.byte()
        return cls(header, msg_id, result)

    def __str__(self) -> str:
        return (
            f"{{ header: {self.header}, msgId: {self.msg_id}, "
            f"result: {{{self.result}: {SUBMIT_RESULT_MAP.get(self.result, '')}}} }}"
        )


@dataclass
class DeliveryResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(RESP_LEN_V2, CMPP_DELIVER_RESP, 0)
    )
    msg_id: int = 0
    result: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        body = struct.pack(">Q", self.msg_id & 0xFFFFFFFFFFFFFFFF)
        if is_v3():
            body += struct.pack(">I", self.result & 0xFFFFFFFF)
        else:
            body += _u8(self.result)
        return _place(frame, body)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "DeliveryResp":
        if (
            header is None
            or header.command_id != CMPP_DELIVER_RESP
            or len(frame) < header.total_length - HEAD_LENGTH
        ):
            raise PacketError()
        reader = _Reader(frame)
        msg_id = reader.u64()
        result = reader.u32() if is_v3() else reader.byte()
        return cls(header, msg_id, result)

    def __str__(self) -> str:
        return (
            f"{{ header: {self.header}, msgId: {self.msg_id}, "
            f"result: {{{self.result}: {DELIVERY_RESULT_MAP.get(self.result, '')}}} }}"
        )


@dataclass
class Delivery:
    """Mobile-originated message or status report; long messages are not supported."""

    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(DELIVERY_BASE_LEN_V2, CMPP_DELIVER, 0)
    )
    msg_id: int = 0
    dest_id: str = ""
    service_id: str = ""
    tp_pid: int = 0
    tp_udhi: int = 0
    msg_fmt: int = 0
    src_terminal_id: str = ""
    src_terminal_type: int = 0
    registered_delivery: int = 0
    msg_length: int = 0
    msg_content: str = ""
    report: Report | None = None
    link_id: str = ""

    def encode(self) -> bytes:
        v3 = is_v3()
        frame = self.header.encode()
        length = self.msg_length & 0xFF
        if self.registered_delivery == 1:
            if self.report is None:
                raise ValueError("status report delivery without a report")
            payload = self.report.encode()
        else:
            payload = msg_slices(self.msg_fmt, self.msg_content)[0]
        body = (
            struct.pack(">Q", self.msg_id & 0xFFFFFFFFFFFFFFFF)
            + _fixed(self.dest_id, 21)
            + _fixed(self.service_id, 10)
            + _u8(self.tp_pid, self.tp_udhi, self.msg_fmt)
            + _fixed(self.src_terminal_id, _terminal_id_len(v3))
            + (_u8(self.src_terminal_type) if v3 else b"")
            + _u8(self.registered_delivery, length)
            + _fixed(payload, length)
            + (_fixed(self.link_id, 20) if v3 else b"")
        )
        return _place(frame, body)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Delivery":
        if (
            header is None
            or header.command_id != CMPP_DELIVER
            or len(frame) < header.total_length - HEAD_LENGTH
        ):
            raise PacketError()
        v3 = is_v3()
        reader = _Reader(frame)
        dly = cls(header=header)
        dly.msg_id = reader.u64()
        dly.dest_id = reader.text(21)
        dly.service_id = reader.text(10)
        dly.tp_pid = reader.byte()
        dly.tp_udhi = reader.byte()
        dly.msg_fmt = reader.byte()
        dly.src_terminal_id = reader.text(_terminal_id_len(v3))
        if v3:
            dly.src_terminal_type = reader.byte()
        dly.registered_delivery = reader.byte()
        dly.msg_length = reader.byte()
        content = reader.take(dly.msg_length)
        if dly.registered_delivery == 1:
            dly.report = Report.decode(content)
        else:
            if content[:3] == _UDH_PREFIX and len(content) >= 6:
                content = content[6:]
            if dly.msg_fmt == FMT_UCS2:
                dly.msg_content = ucs2_decode(content)
            else:
                dly.msg_content = trim_str(content)
        if v3:
            dly.link_id = reader.text(20)
        return dly

    def to_response(self, code: int) -> DeliveryResp:
        total = RESP_LEN_V3 if is_v3() else RESP_LEN_V2
        header = replace(self.header, total_length=total, command_id=CMPP_DELIVER_RESP)
        return DeliveryResp(header, self.msg_id, code)

    def __str__(self) -> str:
        if self.registered_delivery == 1:
            content = str(self.report)
        else:
            content = self.msg_content.replace("\n", " ")
        return (
            f"{{ header:{self.header}, msgId: {self.msg_id}, destId: {self.dest_id}, "
            f"serviceId: {self.service_id}, tpPid: {self.tp_pid}, tpUdhi: {self.tp_udhi}, "
            f"msgFmt: {self.msg_fmt}, srcTerminalId: {self.src_terminal_id}, "
            f"srcTerminalType: {self.src_terminal_type}, "
            f"registeredDelivery: {self.registered_delivery}, msgLength: {self.msg_length}, "
            f"msgContent: {content}, linkID: {self.link_id} }}"
        )


def new_delivery(phone: str, msg: str, dest: str = "", service_id: str = "") -> Delivery:
    """Build a mobile-originated message; text is cut to 70 UCS-2 or 160 ASCII characters."""
    conf = context().conf
    fmt = msg_fmt(msg)
    if fmt == FMT_UCS2:
        length = 2 * len(msg)
        if length > 140:
            msg = msg[:70]
            length = 140
    else:
        length = len(msg.encode("utf-8"))
        if length > 160:
            msg = msg.encode("utf-8")[:160].decode("utf-8", errors="ignore")
            length = 160
    base = DELIVERY_BASE_LEN_V3 if is_v3() else DELIVERY_BASE_LEN_V2
    length &= 0xFF
    return Delivery(
        header=MessageHeader(base + length, CMPP_DELIVER, context().next_seq32()),
        dest_id=dest or conf.get_string("sms-display-no"),
        service_id=service_id or conf.get_string("service-id"),
        msg_fmt=fmt,
        src_terminal_id=phone,
        src_terminal_type=0,
        msg_length=length,
        msg_content=msg,
    )


@dataclass
class Submit:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(SUBMIT_BASE_LEN_V2, CMPP_SUBMIT, 0)
    )
    msg_id: int = 0
    pk_total: int = 0
    pk_number: int = 0
    registered_del: int = 0
    msg_level: int = 0
    service_id: str = ""
    fee_usertype: int = 0
    fee_terminal_id: str = ""
    fee_terminal_type: int = 0
    tp_pid: int = 0
    tp_udhi: int = 0
    msg_fmt: int = 0
    msg_src: str = ""
    fee_type: str = ""
    fee_code: str = ""
    valid_time: str = ""
    at_time: str = ""
    src_id: str = ""
    dest_usr_tl: int = 0
    dest_terminal_id: str = ""
    term_ids: bytes = b""
    dest_terminal_type: int = 0
    msg_length: int = 0
    msg_content: str = ""
    msg_bytes: bytes = b""
    link_id: str = ""

    def encode(self) -> bytes:
        v3 = is_v3()
        id_len = _terminal_id_len(v3)
        frame = self.header.encode()
        body = (
            struct.pack(">Q", self.msg_id & 0xFFFFFFFFFFFFFFFF)
            + _u8(self.pk_total, self.pk_number, self.registered_del, self.msg_level)
            + _fixed(self.service_id, 10)
            + _u8(self.fee_usertype)
            + _fixed(self.fee_terminal_id, id_len)
            + (_u8(self.fee_terminal_type) if v3 else b"")
            + _u8(self.tp_pid, self.tp_udhi, self.msg_fmt)
            + _fixed(self.msg_src, 6)
            + _fixed(self.fee_type, 2)
            + _fixed(self.fee_code, 6)
            + _fixed(self.valid_time, 17)
            + _fixed(self.at_time, 17)
            + _fixed(self.src_id, 21)
            + _u8(self.dest_usr_tl)
            + bytes(self.term_ids)
            + (_u8(self.dest_terminal_type) if v3 else b"")
            + _u8(self.msg_length)
            + bytes(self.msg_bytes)
            + (_fixed(self.link_id, 20) if v3 else b"")
        )
        return _place(frame, body)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Submit":
        if (
            header is None
            or header.command_id != CMPP_SUBMIT
            or len(frame) < header.total_length - HEAD_LENGTH
        ):
            raise PacketError()
        v3 = is_v3()
        id_len = _terminal_id_len(v3)
        reader = _Reader(frame)
        sub = cls(header=header)
        reader.skip(8)
        sub.pk_total = reader.byte()
        sub.pk_number = reader.byte()
        sub.registered_del = reader.byte()
        sub.msg_level = reader.byte()
        sub.service_id = reader.text(10)
        sub.fee_usertype = reader.byte()
        sub.fee_terminal_id = reader.text(id_len)
        if v3:
            sub.fee_terminal_type = reader.byte()
        sub.tp_pid = reader.byte()
        sub.tp_udhi = reader.byte()
        sub.msg_fmt = reader.byte()
        sub.msg_src = reader.text(6)
        sub.fee_type = reader.text(2)
        sub.fee_code = reader.text(6)
        sub.valid_time = reader.text(17)
        sub.at_time = reader.text(17)
        sub.src_id = reader.text(21)
        sub.dest_usr_tl = reader.byte()
        sub.term_ids = reader.take(sub.dest_usr_tl * id_len)
        sub.dest_terminal_id = trim_str(sub.term_ids)
        if v3:
            sub.dest_terminal_type = reader.byte()
        sub.msg_length = reader.byte()
        content = reader.take(sub.msg_length)
        sub.msg_bytes = content
        if content[:3] == _UDH_PREFIX and len(content) >= 6:
            content = content[6:]
        if sub.msg_fmt == FMT_UCS2:
            sub.msg_content = ucs2_decode(content)
        else:
            sub.msg_content = trim_str(content)
        if v3:
            sub.link_id = reader.text(20)
        return sub

    def to_response(self, result: int) -> SubmitResp:
        """Build the reply; a successful reply carries a fresh message id."""
        total = RESP_LEN_V3 if is_v3() else RESP_LEN_V2
        header = replace(self.header, total_length=total, command_id=CMPP_SUBMIT_RESP)
        msg_id = context().next_seq64() if result == 0 else 0
        return SubmitResp(header, msg_id, result)

    def to_delivery_report(self, msg_id: int) -> Delivery:
        """Build the status report delivery for this submit."""
        total = DELIVERY_BASE_LEN_V3 if is_v3() else DELIVERY_BASE_LEN_V2
        header = replace(
            self.header,
            total_length=total + REPORT_LEN,
            command_id=CMPP_DELIVER,
            sequence_id=context().next_seq32(),
        )
        now = datetime.now()
        report = Report.create(
            msg_id,
            self.dest_terminal_id,
            now.strftime("%y%m%d%H%M"),
            (now + timedelta(seconds=10)).strftime("%y%m%d%H%M"),
        )
        return Delivery(
            header=header,
            dest_id=self.src_id,
            service_id=self.service_id,
            src_terminal_id=self.dest_terminal_id,
            src_terminal_type=self.dest_terminal_type,
            registered_delivery=1,
            msg_length=REPORT_LEN,
            report=report,
        )

    def __str__(self) -> str:
        return (
            f"{{ header: {self.header}, msgId: {self.msg_id}, pkTotal: {self.pk_total}, "
            f"pkNumber: {self.pk_number}, registeredDel: {self.registered_del}, "
            f"msgLevel: {self.msg_level}, serviceId: {self.service_id}, "
            f"feeUsertype: {self.fee_usertype}, feeTerminalId: {self.fee_terminal_id}, "
            f"feeTerminalType: {self.fee_terminal_type}, tpPid: {self.tp_pid}, "
            f"tpUdhi: {self.tp_udhi}, msgFmt: {self.msg_fmt}, msgSrc: {self.msg_src}, "
            f"feeType: {self.fee_type}, feeCode: {self.fee_code}, validTime: {self.valid_time}, "
            f"atTime: {self.at_time}, srcId: {self.src_id}, destUsrTl: {self.dest_usr_tl}, "
            f"destTerminalId: [{self.dest_terminal_id}], "
            f"destTerminalType: {self.dest_terminal_type}, msgLength: {self.msg_length}, "
            f"msgBytes: {bytes(self.msg_bytes[:6]).hex()}..., linkID: {self.link_id} }}"
        )


def _apply_options(sub: Submit, opts: MtOptions) -> None:
    conf = context().conf
    sub.fee_usertype = (
        opts.fee_usertype if opts.fee_usertype != UNSET else conf.get_int("fee-user-type") & 0xFF
    )
    sub.msg_level = (
        opts.msg_level if opts.msg_level != UNSET else conf.get_int("default-msg-level") & 0xFF
    )
    sub.registered_del = (
        opts.registered_del if opts.registered_del != UNSET else conf.get_int("need-report") & 0xFF
    )
    sub.fee_terminal_type = (
        opts.fee_terminal_type
        if opts.fee_terminal_type != UNSET
        else conf.get_int("fee-terminal-type") & 0xFF
    )
    sub.fee_type = opts.fee_type or conf.get_string("fee-type")
    if opts.at_time:
        sub.at_time = opts.at_time
    if opts.valid_time:
        sub.valid_time = opts.valid_time
    else:
        sub.valid_time = format_time(datetime.now() + conf.get_duration("default-valid-duration"))
    sub.fee_code = opts.fee_code or conf.get_string("fee-code")
    sub.fee_terminal_id = opts.fee_terminal_id or conf.get_string("fee-terminal-id")
    sub.src_id = opts.src_id or conf.get_string("sms-display-no")
    sub.service_id = opts.service_id or conf.get_string("service-id")
    sub.link_id = opts.link_id or conf.get_string("link-id")


def new_submit(phones: list[str], content: str, *args: Option) -> list[Submit]:
    """Build one submit per long-message part of ``content`` addressed to ``phones``."""
    ctx = context()
    v3 = is_v3()
    base = SUBMIT_BASE_LEN_V3 if v3 else SUBMIT_BASE_LEN_V2
    id_len = _terminal_id_len(v3)
    mt = Submit(header=MessageHeader(base, CMPP_SUBMIT, ctx.next_seq32()))
    _apply_options(mt, load_options(*args))
    mt.msg_fmt = msg_fmt(content)
    mt.dest_usr_tl = len(phones) & 0xFF
    mt.dest_terminal_id = ",".join(phones)
    mt.term_ids = b"".join(_fixed(phone, id_len) for phone in phones[: mt.dest_usr_tl])
    mt.msg_src = ctx.conf.get_string("source-addr")
    mt.msg_content = content

    slices = msg_slices(mt.msg_fmt, content)
    if len(slices) == 1:
        mt.pk_total = 1
        mt.pk_number = 1
        mt.msg_length = len(slices[0]) & 0xFF
        mt.msg_bytes = slices[0]
        mt.header.total_length = base + len(mt.term_ids) + len(slices[0])
        return [mt]

    mt.tp_udhi = 1
    mt.pk_total = len(slices) & 0xFF
    messages = []
    for number, part in enumerate(slices, start=1):
        header = replace(mt.header, total_length=base + len(mt.term_ids) + len(part))
        if number != 1:
            header.sequence_id = ctx.next_seq32()
        messages.append(
            replace(
                mt,
                header=header,
                pk_number=number & 0xFF,
                msg_length=len(part) & 0xFF,
                msg_bytes=part,
            )
        )
    return messages