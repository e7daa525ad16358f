"""SMGP link test and exit messages; each is a bare header."""

from __future__ import annotations

from dataclasses import dataclass

from smsgw.smgp.header import (
    CMD_ACTIVE_TEST,
    CMD_ACTIVE_TEST_RESP,
    CMD_EXIT,
    CMD_EXIT_RESP,
    COMMAND_MAP,
    HEAD_LENGTH,
    MessageHeader,
    context,
)


def _describe(header: MessageHeader, command: int) -> str:
    return (
        f"{{ PacketLength: {header.packet_length}, RequestId: {COMMAND_MAP[command]}, "
        f"SequenceId: {header.sequence_id} }}"
    )


@dataclass
class ActiveTestResp(MessageHeader):
    request_id: int = CMD_ACTIVE_TEST_RESP

    @classmethod
    def create(cls, seq: int) -> "ActiveTestResp":
        """Reply to a link test with sequence ``seq``; carries the request's command id."""
        return cls(HEAD_LENGTH, CMD_ACTIVE_TEST, seq)

    def __str__(self) -> str:
        return _describe(self, CMD_ACTIVE_TEST_RESP)


@dataclass
class ActiveTest(MessageHeader):
    request_id: int = CMD_ACTIVE_TEST

    @classmethod
    def create(cls) -> "ActiveTest":
        return cls(HEAD_LENGTH, CMD_ACTIVE_TEST, context().next_seq32())

    def to_response(self, code: int = 0) -> ActiveTestResp:
        return ActiveTestResp(self.packet_length, CMD_ACTIVE_TEST_RESP, self.sequence_id)

    def __str__(self) -> str:
        return _describe(self, CMD_ACTIVE_TEST)


@dataclass
class ExitResp(MessageHeader):
    request_id: int = CMD_EXIT_RESP

    @classmethod
    def create(cls, seq: int) -> "ExitResp":
        return cls(HEAD_LENGTH, CMD_EXIT_RESP, seq)

    def __str__(self) -> str:
        return _describe(self, CMD_EXIT_RESP)


@dataclass
class Exit(MessageHeader):
    request_id: int = CMD_EXIT

    @classmethod
    def create(cls) -> "Exit":
        return cls(HEAD_LENGTH, CMD_EXIT, context().next_seq32())

    def to_response(self, code: int = 0) -> ExitResp:
        return ExitResp(self.packet_length, CMD_EXIT_RESP, self.sequence_id)

    def __str__(self) -> str:
        return _describe(self, CMD_EXIT)