"""CMPP link test and terminate messages."""

from __future__ import annotations

from dataclasses import dataclass, field

from smsgw.cmpp.header import (
    CMPP_ACTIVE_TEST,
    CMPP_ACTIVE_TEST_RESP,
    CMPP_TERMINATE,
    CMPP_TERMINATE_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    context,
)

ACTIVE_TEST_RESP_LEN = HEAD_LENGTH + 1


@dataclass
class ActiveTest:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(HEAD_LENGTH, CMPP_ACTIVE_TEST, 0)
    )

    @classmethod
    def create(cls) -> "ActiveTest":
        return cls(MessageHeader(HEAD_LENGTH, CMPP_ACTIVE_TEST, context().next_seq32()))

    def encode(self) -> bytes:
        return bytes(self.header.encode())

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes | None) -> "ActiveTest":
        if header is None or header.command_id != CMPP_ACTIVE_TEST or frame:
            raise PacketError()
        return cls(header)

    def to_response(self, code: int = 0) -> "ActiveTestResp":
        return ActiveTestResp(
            MessageHeader(ACTIVE_TEST_RESP_LEN, CMPP_ACTIVE_TEST_RESP, self.header.sequence_id),
            reserved=0,
        )

    def __str__(self) -> str:
        return (
            f"{{ TotalLength: {self.header.total_length}, CommandId: CMPP_ACTIVE_TEST, "
            f"SequenceId: {self.header.sequence_id} }}"
        )


@dataclass
class ActiveTestResp:
    header: MessageHeader = field(
        default_factory=lambda: MessageHeader(ACTIVE_TEST_RESP_LEN, CMPP_ACTIVE_TEST_RESP, 0)
    )
    reserved: int = 0

    def encode(self) -> bytes:
        frame = self.header.encode()
        if len(frame) > HEAD_LENGTH:
            frame[HEAD_LENGTH] = self.reserved & 0xFF
        return bytes(frame)

    @classmethod
    def decode(cls, header: MessageHeader | None, frame: bytes) -> "ActiveTestResp":
        if (
            header is None
            or header.command_id != CMPP_ACTIVE_TEST_RESP
            or len(frame) < ACTIVE_TEST_RESP_LEN - HEAD_LENGTH
        ):
            raise PacketError()
        return cls(header, reserved=frame[0])

    def __str__(self) -> str:
        return (
            f"{{ TotalLength: {self.header.total_length}, CommandId: CMPP_ACTIVE_TEST_RESP, "
            f"SequenceId: {self.header.sequence_id}, reserved: {self.reserved} }}"
        )


def new_terminate() -> MessageHeader:
    """Header-only request to close the connection."""
    return MessageHeader(HEAD_LENGTH, CMPP_TERMINATE, context().next_seq32())


def new_terminate_resp(seq: int) -> MessageHeader:
    """Header-only reply to a terminate request with sequence ``seq``."""
    return MessageHeader(HEAD_LENGTH, CMPP_TERMINATE_RESP, seq)