"""CMPP_CONNECT and CMPP_CONNECT_RESP: login request, authentication and reply."""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime

from smsgw.cmpp.header import (
    CMPP_CONNECT,
    CMPP_CONNECT_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    context,
    is_v3,
)

_log = logging.getLogger(__name__)

CONNECT_LEN = 39
CONNECT_RESP_LEN_V2 = 30
CONNECT_RESP_LEN_V3 = 33

CONNECT_STATUS_MAP: dict[int, str] = {
    0: "成功",
    1: "消息结构错",
    2: "非法源地址",
    3: "认证错",
    4: "版本太高",
    5: "其他错误",
}


def _put(frame: bytearray, offset: int, size: int, data: bytes) -> None:
    chunk = bytes(data[:size])
    frame[offset:offset + len(chunk)] = chunk


def request_auth_md5(timestamp: int) -> bytes:
    """MD5(source address + 9 zero bytes + shared secret + timestamp as 10 digits)."""
    conf = context().conf
    auth_data = (
        conf.get_string("source-addr").encode("utf-8")
        + bytes(9)
        + conf.get_string("shared-secret").encode("utf-8")
        + f"{timestamp:010d}".encode("ascii")
    )
    _log.debug("[AuthCheck] auth data: %s", auth_data.hex())
    return hashlib.md5(auth_data).digest()


def _configured_version() -> int:
    return context().conf.get_int("version") & 0xFF


@dataclass
class Connect:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(CONNECT_LEN, CMPP_CONNECT, 0)
    )
    source_addr: str = ""
    authenticator_source: bytes = b""
    version: int = 0
    timestamp: int = 0

    @classmethod
    def create(cls) -> "Connect":
        """Build a login request from the configured source address and secret."""
        ctx = context()
        timestamp = int(datetime.now().strftime("%m%d%H%M%S"))
        return cls(
            header=MessageHeader(CONNECT_LEN, CMPP_CONNECT, ctx.next_seq32()),
            source_addr=ctx.conf.get_string("source-addr"),
            authenticator_source=request_auth_md5(timestamp),
            version=_configured_version(),
            timestamp=timestamp,
        )

    def encode(self) -> bytes:
        frame = self.header.encode()
        if len(frame) == CONNECT_LEN and self.header.total_length == CONNECT_LEN:
            _put(frame, 12, 6, self.source_addr.encode("utf-8"))
            _put(frame, 18, 16, self.authenticator_source)
            frame[34] = self.version & 0xFF
            struct.pack_into(">I", frame, 35, self.timestamp & 0xFFFFFFFF)
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Connect":
        if (
            header is None
            or header.command_id != CMPP_CONNECT
            or len(frame) < CONNECT_LEN - HEAD_LENGTH
        ):
            raise PacketError()
        data = bytes(frame)
        return cls(
            header=header,
            source_addr=data[0:6].decode("utf-8", errors="replace"),
            authenticator_source=data[6:22],
            version=data[22],
            timestamp=struct.unpack_from(">I", data, 23)[0],
        )

    def check(self) -> int:
        """Return the login status: 0 success, 3 authentication error, 4 version too high."""
        if self.version & 0xF0 != _configured_version() & 0xF0:
            return 4
        computed = request_auth_md5(self.timestamp)
        _log.debug("[AuthCheck] input  : %s", self.authenticator_source.hex())
        _log.debug("[AuthCheck] compute: %s", computed.hex())
        if not context().conf.get_bool("auth-check") or self.authenticator_source == computed:
            return 0
        return 3

    def to_response(self, code: int) -> "ConnectResp":
        """Build the reply; a zero ``code`` means the status comes from :meth:`check`."""
        total = CONNECT_RESP_LEN_V3 if is_v3() else CONNECT_RESP_LEN_V2
        status = self.check() if code == 0 else code
        auth_data = (
            str(status).encode("ascii")
            + self.authenticator_source
            + context().conf.get_string("shared-secret").encode("utf-8")
        )
        return ConnectResp(
            header=MessageHeader(total, CMPP_CONNECT_RESP, self.header.sequence_id),
            status=status,
            authenticator_ismg=hashlib.md5(auth_data).digest(),
            version=_configured_version(),
        )

    def __str__(self) -> str:
        return (
            f"{{ Header: {self.header}, sourceAddr: {self.source_addr}, "
            f"authenticatorSource: {self.authenticator_source.hex()}, "
            f"version: {self.version:#x}, timestamp: {self.timestamp:010d} }}"
        )


@dataclass
class ConnectResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(CONNECT_RESP_LEN_V2, CMPP_CONNECT_RESP, 0)
    )
    status: int = 0
    authenticator_ismg: bytes = b""
    version: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        if len(frame) == self.header.total_length:
            index = 12
            if is_v3():
                if len(frame) >= index + 4:
                    struct.pack_into(">I", frame, index, self.status & 0xFFFFFFFF)
                index += 4
            else:
                if len(frame) > index:
                    frame[index] = self.status & 0xFF
                index += 1
            _put(frame, index, max(0, min(16, len(frame) - index)), self.authenticator_ismg)
            index += 16
            if len(frame) > index:
                frame[index] = self.version & 0xFF
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "ConnectResp":
        v3 = is_v3()
        body_len = CONNECT_RESP_LEN_V3 if v3 else CONNECT_RESP_LEN_V2
        if (
            header is None
            or header.command_id != CMPP_CONNECT_RESP
            or len(frame) < body_len - HEAD_LENGTH
        ):
            raise PacketError()
        data = bytes(frame)
        if v3:
            status = struct.unpack_from(">I", data, 0)[0]
            index = 4
        else:
            status = data[0]
            index = 1
        return cls(
            header=header,
            status=status,
            authenticator_ismg=data[index:index + 16],
            version=data[index + 16],
        )

    def __str__(self) -> str:
        return (
            f"{{ Header: {self.header}, status: {{{self.status}: "
            f"{CONNECT_STATUS_MAP.get(self.status, '')}}}, "
            f"authenticatorISMG: {self.authenticator_ismg.hex()}, version: {self.version:#x} }}"
        )