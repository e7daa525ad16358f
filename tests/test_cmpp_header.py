import pytest

from smsgw.cmpp.header import (
    CMPP_CONNECT,
    CMPP_CONNECT_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    configure,
    context,
    is_v3,
)
from smsgw.config import YamlConfig
from smsgw.sequences import CycleSequence, Snowflake


def _configure(version):
    conf = YamlConfig({"version": version})
    return configure(conf, CycleSequence(1, 1), Snowflake(1, 1), CycleSequence(1, 1))


@pytest.fixture
def v2():
    return _configure(0x20)


def test_version_two_is_not_v3(v2):
    assert context().conf.get_int("version") & 0xF0 == 0x20
    assert is_v3() is False


def test_version_three_is_v3():
    _configure(0x30)
    assert is_v3() is True


def test_encode_header(v2):
    header = MessageHeader(16, CMPP_CONNECT, 1)
    frame = header.encode()
    assert bytes(frame) == bytes.fromhex("00000010" "00000001" "00000001") + bytes(4)


def test_encode_pads_short_length(v2):
    header = MessageHeader(5, CMPP_CONNECT, 7)
    frame = header.encode()
    assert len(frame) == HEAD_LENGTH
    assert header.total_length == HEAD_LENGTH


def test_decode_header():
    frame = bytearray(16)
    frame[0:4] = (16).to_bytes(4, "big")
    frame[4:8] = CMPP_CONNECT.to_bytes(4, "big")
    frame[8:12] = (1).to_bytes(4, "big")
    frame[12:16] = b"1234"
    header = MessageHeader.decode(frame)
    assert header == MessageHeader(16, CMPP_CONNECT, 1)


def test_round_trip_response_command(v2):
    seq = context().next_seq32()
    header = MessageHeader(HEAD_LENGTH, CMPP_CONNECT_RESP, seq)
    assert MessageHeader.decode(header.encode()) == header


def test_decode_short_frame():
    with pytest.raises(PacketError):
        MessageHeader.decode(b"\x00" * 11)


def test_str_names_command():
    header = MessageHeader(16, CMPP_CONNECT, 1)
    assert str(header) == "{ PacketLength: 16, RequestId: CMPP_CONNECT, SequenceId: 1 }"


def test_str_unknown_command():
    assert str(MessageHeader(12, 0x77, 3)) == "{ PacketLength: 12, RequestId: , SequenceId: 3 }"


def test_str_names_response_command():
    header = MessageHeader(30, CMPP_CONNECT_RESP, 9)
    assert str(header) == "{ PacketLength: 30, RequestId: CMPP_CONNECT_RESP, SequenceId: 9 }"


def test_sequences_advance(v2):
    ctx = context()
    first = ctx.next_seq32()
    second = ctx.next_seq32()
    assert second == first + 1
    assert ctx.next_seq64() > 0
    assert ctx.next_report_seq() == first