import pytest

from smsgw.config import YamlConfig
from smsgw.sequences import BcdSequence, CycleSequence
from smsgw.smgp.header import (
    CMD_ACTIVE_TEST,
    CMD_EXIT_RESP,
    CMD_LOGIN,
    CMD_LOGIN_RESP,
    CMD_SUBMIT_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    configure,
    context,
    gb_decode,
    gb_encode,
)


def test_encode_pins_wire_bytes():
    frame = MessageHeader(HEAD_LENGTH, CMD_LOGIN, 1).encode()
    assert bytes(frame) == bytes.fromhex("0000000c" "00000001" "00000001")


def test_encode_response_command_wire_bytes():
    frame = MessageHeader(HEAD_LENGTH, CMD_LOGIN_RESP, 2).encode()
    assert bytes(frame) == bytes.fromhex("0000000c" "80000001" "00000002")


def test_encode_zero_fills_to_packet_length():
    frame = MessageHeader(16, CMD_LOGIN, 7).encode()
    assert len(frame) == 16
    assert bytes(frame[12:]) == bytes(4)


def test_encode_raises_short_length_to_head_length():
    header = MessageHeader(3, CMD_ACTIVE_TEST, 2)
    frame = header.encode()
    assert len(frame) == HEAD_LENGTH
    assert header.packet_length == HEAD_LENGTH


def test_decode_round_trip():
    header = MessageHeader(26, CMD_SUBMIT_RESP, 0xFFFFFFFF)
    assert MessageHeader.decode(header.encode()) == header


def test_decode_ignores_trailing_bytes():
    frame = bytes(MessageHeader(16, CMD_LOGIN, 1).encode())
    frame = frame[:12] + b"1234"
    assert MessageHeader.decode(frame) == MessageHeader(16, CMD_LOGIN, 1)


def test_decode_short_frame_raises():
    with pytest.raises(PacketError):
        MessageHeader.decode(bytes(11))


def test_str_names_the_command():
    text = str(MessageHeader(12, CMD_LOGIN, 5))
    assert "RequestId: Login," in text
    assert "SequenceId: 5" in text


@pytest.mark.parametrize(
    "command,name",
    [
        (CMD_LOGIN_RESP, "Login_Resp"),
        (CMD_ACTIVE_TEST, "Active_Test"),
        (CMD_EXIT_RESP, "Exit_Resp"),
        (CMD_SUBMIT_RESP, "Submit_Resp"),
    ],
)
def test_str_names_each_command(command, name):
    assert str(MessageHeader(12, command, 3)) == (
        f"{{ PacketLength: 12, RequestId: {name}, SequenceId: 3 }}"
    )


def test_str_unknown_command_is_blank():
    assert str(MessageHeader(12, 0x55, 1)) == "{ PacketLength: 12, RequestId: , SequenceId: 1 }"


def test_gb_round_trip():
    text = "hello world 世界，你好！"
    assert gb_decode(gb_encode(text)) == text


def test_gb_encode_chinese_is_two_bytes_per_character():
    assert gb_encode("中") == b"\xd6\xd0"
    assert len(gb_encode("中华人民共和国")) == 14


def test_gb_decode_ascii_passthrough():
    assert gb_decode(b"TD:123456") == "TD:123456"


def test_configure_installs_context():
    conf = YamlConfig({"version": 0x30})
    seq32 = CycleSequence(1, 1)
    seq80 = BcdSequence("000001")
    ctx = configure(conf, seq32, seq80)
    assert context() is ctx
    assert ctx.next_seq32() == (1 << 31 | 1 << 28 | 1)
    msg_id = ctx.next_seq80()
    assert len(msg_id) == 10
    assert msg_id[:3] == b"\x00\x00\x01"