"""SMGP message header, command ids, status texts and the codec's shared configuration."""

from __future__ import annotations

import struct
from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol

from smsgw.config import YamlConfig

HEAD_LENGTH = 12
RESPONSE_BIT = 0x80000000

# Request commands by wire name; each response id sets RESPONSE_BIT.
_REQUESTS = {"Login": 1, "Submit": 2, "Deliver": 3, "Active_Test": 4, "Exit": 6}

CMD_LOGIN, CMD_SUBMIT, CMD_DELIVER, CMD_ACTIVE_TEST, CMD_EXIT = _REQUESTS.values()
CMD_LOGIN_RESP = CMD_LOGIN | RESPONSE_BIT
CMD_SUBMIT_RESP = CMD_SUBMIT | RESPONSE_BIT
CMD_DELIVER_RESP = CMD_DELIVER | RESPONSE_BIT
CMD_ACTIVE_TEST_RESP = CMD_ACTIVE_TEST | RESPONSE_BIT
CMD_EXIT_RESP = CMD_EXIT | RESPONSE_BIT

COMMAND_MAP: dict[int, str] = {}
for _name, _cid in _REQUESTS.items():
    COMMAND_MAP[_cid] = _name
    COMMAND_MAP[_cid | RESPONSE_BIT] = f"{_name}_Resp"
del _name, _cid


# Optional TLV parameter tags, numbered consecutively from 1.
TlvTag = IntEnum(
    "TlvTag",
    "TP_PID TP_UDHI LINK_ID CHARGE_USER_TYPE CHARGE_TERM_TYPE CHARGE_TERM_PSEUDO "
    "DEST_TERM_TYPE DEST_TERM_PSEUDO PK_TOTAL PK_NUMBER SUBMIT_MSG_TYPE SP_DEAL_RESULT "
    "SRC_TERM_TYPE SRC_TERM_PSEUDO NODES_COUNT MSG_SRC SRC_TYPE M_SERVICE_ID",
)

(
    TP_PID, TP_UDHI, LINK_ID, CHARGE_USER_TYPE, CHARGE_TERM_TYPE, CHARGE_TERM_PSEUDO,
    DEST_TERM_TYPE, DEST_TERM_PSEUDO, PK_TOTAL, PK_NUMBER, SUBMIT_MSG_TYPE, SP_DEAL_RESULT,
    SRC_TERM_TYPE, SRC_TERM_PSEUDO, NODES_COUNT, MSG_SRC, SRC_TYPE, M_SERVICE_ID,
) = (int(tag) for tag in TlvTag)


# Status texts in runs of consecutive codes, keyed by the first code of each run.
_STATUS_RUNS: dict[int, tuple[str, ...]] = {
    0: ("成功", "系统忙", "超过最大连接数"),
    10: ("消息结构错", "命令字错", "序列号重复"),
    20: ("IP地址错", "认证错", "版本太高"),
    30: (
        "非法消息类型（MsgType）", "非法优先级（Priority）", "非法资费类型（FeeType）",
        "非法资费代码（FeeCode）", "非法短消息格式（MsgFormat）", "非法时间格式",
        "非法短消息长度（MsgLength）", "有效期已过", "非法查询类别（QueryType）", "路由错误",
        "非法包月费/封顶费（FixedFee）", "非法更新类型（UpdateType）", "非法路由编号（RouteId）",
        "非法服务代码（ServiceId）", "非法有效期（ValidTime）", "非法定时发送时间（AtTime）",
        "非法发送用户号码（SrcTermId）", "非法接收用户号码（DestTermId）",
        "非法计费用户号码（ChargeTermId）", "非法SP服务代码（SPCode）",
    ),
    56: (
        "非法源网关代码（SrcGatewayID）", "非法查询号码（QueryTermID）", "没有匹配路由",
        "非法SP类型（SPType）", "非法上一条路由编号（LastRouteID）", "非法路由类型（RouteType）",
        "非法目标网关代码（DestGatewayID）", "非法目标网关IP（DestGatewayIP）",
        "非法目标网关端口（DestGatewayPort）", "非法路由号码段（TermRangeID）",
        "非法终端所属省代码（ProvinceCode）", "非法用户类型（UserType）", "本节点不支持路由更新",
        "非法SP企业代码（SPID）", "非法SP接入类型（SPAccessType）", "路由信息更新失败",
        "非法时间戳（Time）", "非法业务代码（MServiceID）", "SP禁止下发时段", "SP发送超过日流量",
        "SP帐号过有效期",
    ),
}

STAT_MAP: dict[int, str] = {
    start + offset: text
    for start, texts in _STATUS_RUNS.items()
    for offset, text in enumerate(texts)
}

_HEADER = struct.Struct(">III")


class PacketError(ValueError):
    """A frame is malformed or of the wrong kind."""

    def __init__(self, message: str = "error packet") -> None:
        super().__init__(message)


class Sequence32(Protocol):
    def next_val(self) -> int: ...


class Sequence80(Protocol):
    def next_val(self) -> bytes: ...


@dataclass
class Context:
    """Configuration and sequence generators used when building SMGP messages."""

    conf: YamlConfig
    seq32: Sequence32
    seq80: Sequence80

    def next_seq32(self) -> int:
        return self.seq32.next_val() & 0xFFFFFFFF

    def next_seq80(self) -> bytes:
        return bytes(self.seq80.next_val())


_context: Context | None = None


def configure(conf: YamlConfig, seq32: Sequence32, seq80: Sequence80) -> Context:
    """Install the configuration and sequences the SMGP codec uses."""
    global _context
    _context = Context(conf, seq32, seq80)
    return _context


def context() -> Context:
    """Return the installed codec context."""
    if _context is None:
        raise RuntimeError("the SMGP codec is not configured")
    return _context


def gb_encode(text: str) -> bytes:
    """Encode text as GB18030."""
    return text.encode("gb18030")


def gb_decode(data: bytes) -> str:
    """Decode GB18030 bytes; invalid sequences become replacement characters."""
    return bytes(data).decode("gb18030", errors="replace")


@dataclass
class MessageHeader:
    packet_length: int = HEAD_LENGTH
    request_id: int = 0
    sequence_id: int = 0

    def encode(self) -> bytearray:
        """Return a zero-filled frame of ``packet_length`` bytes led by the header."""
        self.packet_length = max(self.packet_length, HEAD_LENGTH)
        frame = bytearray(self.packet_length)
        _HEADER.pack_into(frame, 0, self.packet_length, self.request_id, self.sequence_id)
        return frame

    @classmethod
    def decode(cls, frame: bytes) -> "MessageHeader":
        if len(frame) < HEAD_LENGTH:
            raise PacketError()
        return cls(*_HEADER.unpack_from(bytes(frame[:HEAD_LENGTH])))

    def __str__(self) -> str:
        name = COMMAND_MAP.get(self.request_id, "")
        return (
            f"{{ PacketLength: {self.packet_length}, RequestId: {name}, "
            f"SequenceId: {self.sequence_id} }}"
        )