import pytest

from smsgw.config import YamlConfig
from smsgw.sequences import BcdSequence, CycleSequence
from smsgw.smgp.active import ActiveTest, ActiveTestResp, Exit, ExitResp
from smsgw.smgp.header import (
    CMD_ACTIVE_TEST,
    CMD_ACTIVE_TEST_RESP,
    CMD_EXIT,
    CMD_EXIT_RESP,
    HEAD_LENGTH,
    MessageHeader,
    PacketError,
    configure,
)


@pytest.fixture(autouse=True)
def smgp_context():
    conf = YamlConfig({"version": 0x30, "smgw-id": "000001"})
    return configure(conf, CycleSequence(1, 1), BcdSequence("000001"))


def _fields(header):
    return (header.packet_length, header.request_id, header.sequence_id)


def test_active_test_round_trip():
    at = ActiveTest.create()
    data = at.encode()
    assert len(data) == HEAD_LENGTH
    h = MessageHeader.decode(data)
    assert _fields(h) == _fields(at)
    at2 = ActiveTest.decode(data)
    assert isinstance(at2, ActiveTest)
    assert _fields(at2) == (HEAD_LENGTH, CMD_ACTIVE_TEST, at.sequence_id)


def test_active_test_response():
    at = ActiveTest.create()
    resp = at.to_response(0)
    assert resp.request_id == CMD_ACTIVE_TEST_RESP
    assert resp.sequence_id == at.sequence_id
    data = resp.encode()
    resp2 = ActiveTestResp.decode(data)
    assert _fields(resp2) == _fields(resp)


def test_active_test_sequences_increase():
    first = ActiveTest.create()
    second = ActiveTest.create()
    assert second.sequence_id == first.sequence_id + 1


def test_active_test_resp_create_keeps_sequence():
    resp = ActiveTestResp.create(42)
    assert resp.sequence_id == 42
    assert resp.packet_length == HEAD_LENGTH
    assert "Active_Test_Resp" in str(resp)


def test_active_test_str():
    at = ActiveTest.create()
    assert "RequestId: Active_Test," in str(at)


def test_exit_round_trip():
    ex = Exit.create()
    data = ex.encode()
    e2 = Exit.decode(data)
    assert _fields(e2) == (HEAD_LENGTH, CMD_EXIT, ex.sequence_id)
    assert "Exit" in str(e2)


def test_exit_response():
    ex = Exit.create()
    resp = ex.to_response(0)
    assert _fields(resp) == (HEAD_LENGTH, CMD_EXIT_RESP, ex.sequence_id)
    resp2 = ExitResp.decode(resp.encode())
    assert _fields(resp2) == _fields(resp)
    assert "Exit_Resp" in str(resp2)


def test_exit_resp_create():
    resp = ExitResp.create(9)
    assert _fields(resp) == (HEAD_LENGTH, CMD_EXIT_RESP, 9)


def test_decode_short_frame_raises():
    with pytest.raises(PacketError):
        Exit.decode(bytes(4))