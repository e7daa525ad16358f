"""SMGP Login and Login_Resp: client login, authentication and reply."""

from __future__ import annotations

import hashlib
import logging
import struct
from dataclasses import dataclass, field
from datetime import datetime

from smsgw.smgp.header import (
    CMD_LOGIN,
    CMD_LOGIN_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    context,
)

_log = logging.getLogger(__name__)

LOGIN_LEN = 42
LOGIN_RESP_LEN = 33

CONNECT_STATUS_MAP: dict[int, str] = {
    0: "成功",
    1: "系统忙",
    2: "超过最大连接数",
    10: "消息结构错",
    11: "命令字错",
    12: "序列号重复",
    20: "IP地址错",
    21: "认证错",
    22: "版本太高",
    30: "非法消息类型（MsgType）",
    31: "非法优先级（Priority）",
    32: "非法资费类型（FeeType）",
    33: "非法资费代码（FeeCode）",
}


def _put(frame: bytearray, offset: int, size: int, data: bytes) -> None:
    chunk = bytes(data[:size])
    frame[offset:offset + len(chunk)] = chunk


def _configured_version() -> int:
    return context().conf.get_int("version") & 0xFF


def request_auth_md5(timestamp: int) -> bytes:
    """MD5(client id + 7 zero bytes + shared secret + timestamp as 10 digits)."""
    conf = context().conf
    auth_data = (
        conf.get_string("client-id").encode("utf-8")
        + bytes(7)
        + conf.get_string("shared-secret").encode("utf-8")
        + f"{timestamp:010d}".encode("ascii")
    )
    _log.debug("[AuthCheck] auth data: %s", auth_data.hex())
    return hashlib.md5(auth_data).digest()


@dataclass
class LoginResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(LOGIN_RESP_LEN, CMD_LOGIN_RESP, 0)
    )
    status: int = 0
    authenticator_server: bytes = b""
    version: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        if len(frame) == self.header.packet_length and len(frame) >= LOGIN_RESP_LEN:
            struct.pack_into(">I", frame, 12, self.status & 0xFFFFFFFF)
            _put(frame, 16, 16, self.authenticator_server)
            frame[32] = self.version & 0xFF
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "LoginResp":
        if (
            header is None
            or header.request_id != CMD_LOGIN_RESP
            or len(frame) < LOGIN_RESP_LEN - HEAD_LENGTH
        ):
            raise PacketError()
        data = bytes(frame)
        return cls(
            header=header,
            status=struct.unpack_from(">I", data, 0)[0],
            authenticator_server=data[4:20],
            version=data[20],
        )

    def __str__(self) -> str:
        return (
            f"{{ Header: {self.header}, status: {{{self.status}: "
            f"{CONNECT_STATUS_MAP.get(self.status, '')}}}, "
            f"authenticatorISMG: {self.authenticator_server.hex()}, version: {self.version:#x} }}"
        )


@dataclass
class Login:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(LOGIN_LEN, CMD_LOGIN, 0)
    )
    client_id: str = ""
    authenticator_client: bytes = b""
    login_mode: int = 0
    timestamp: int = 0
    version: int = 0

    @classmethod
    def create(cls) -> "Login":
        """Build a login request from the configured client id and secret."""
        ctx = context()
        timestamp = int(datetime.now().strftime("%m%d%H%M%S"))
        return cls(
            header=MessageHeader(LOGIN_LEN, CMD_LOGIN, ctx.next_seq32()),
            client_id=ctx.conf.get_string("client-id"),
            authenticator_client=request_auth_md5(timestamp),
            login_mode=2,
            timestamp=timestamp,
            version=_configured_version(),
        )

    def encode(self) -> bytes:
        frame = self.header.encode()
        if len(frame) == LOGIN_LEN and self.header.packet_length == LOGIN_LEN:
            _put(frame, 12, 8, self.client_id.encode("utf-8"))
            _put(frame, 20, 16, self.authenticator_client)
            frame[36] = self.login_mode & 0xFF
            struct.pack_into(">I", frame, 37, self.timestamp & 0xFFFFFFFF)
            frame[41] = self.version & 0xFF
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "Login":
        if (
            header is None
            or header.request_id != CMD_LOGIN
            or len(frame) < LOGIN_LEN - HEAD_LENGTH
        ):
            raise PacketError()
        data = bytes(frame)
        return cls(
            header=header,
            client_id=data[0:8].decode("utf-8", errors="replace"),
            authenticator_client=data[8:24],
            login_mode=data[24],
            timestamp=struct.unpack_from(">I", data, 25)[0],
            version=data[29],
        )

    def check(self) -> int:
        """Return the login status: 0 success, 21 authentication error, 22 version too high."""
        if self.version & 0xF0 != _configured_version() & 0xF0:
            return 22
        computed = request_auth_md5(self.timestamp)
        _log.debug("[AuthCheck] input  : %s", self.authenticator_client.hex())
        _log.debug("[AuthCheck] compute: %s", computed.hex())
        if not context().conf.get_bool("auth-check") or self.authenticator_client == computed:
            return 0
        return 21

    def to_response(self, code: int) -> LoginResp:
        """Build the reply; a zero ``code`` means the status comes from :meth:`check`."""
        status = self.check() if code == 0 else code
        auth_data = (
            str(status).encode("ascii")
            + self.authenticator_client
            + context().conf.get_string("shared-secret").encode("utf-8")
        )
        return LoginResp(
            header=MessageHeader(LOGIN_RESP_LEN, CMD_LOGIN_RESP, self.header.sequence_id),
            status=status,
            authenticator_server=hashlib.md5(auth_data).digest(),
            version=_configured_version(),
        )

    def __str__(self) -> str:
        return (
            f"{{ Header: {self.header}, clientID: {self.client_id}, "
            f"authenticatorClient: {self.authenticator_client.hex()}, "
            f"logoinMode: {self.login_mode:x}, timestamp: {self.timestamp:010d}, "
            f"version: {self.version:#x} }}"
        )