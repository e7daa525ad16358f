import hashlib

import pytest

from smsgw.cmpp.connect import Connect, ConnectResp, request_auth_md5
from smsgw.cmpp.header import (
    CMPP_CONNECT,
    CMPP_CONNECT_RESP,
    MessageHeader,
    PacketError,
    configure,
)
from smsgw.config import YamlConfig
from smsgw.sequences import CycleSequence, Snowflake


def _configure(version=0x20, auth_check=True):
    conf = YamlConfig(
        {
            "version": version,
            "source-addr": "901234",
            "shared-secret": "secret",
            "auth-check": auth_check,
        }
    )
    return configure(conf, CycleSequence(1, 1), Snowflake(1, 1), CycleSequence(1, 1))


@pytest.fixture(autouse=True)
def _ctx():
    _configure()


def _connect(timestamp=1001235010, version=0x20):
    connect = Connect(
        header=MessageHeader(39, CMPP_CONNECT, 7),
        source_addr="123456",
        version=version,
        timestamp=timestamp,
    )
    connect.authenticator_source = request_auth_md5(timestamp)
    return connect


def test_connect_encode_and_check():
    connect = _connect()
    frame = connect.encode()
    assert len(frame) == 39
    assert frame[12:18] == b"123456"
    assert connect.check() == 0
    resp = connect.to_response(0)
    assert resp.status == 0
    assert resp.header.command_id == CMPP_CONNECT_RESP
    assert resp.header.sequence_id == 7
    assert len(resp.encode()) == 30


def test_auth_md5_worked_example():
    expected = hashlib.md5(b"901234" + bytes(9) + b"secret" + b"0706104024").digest()
    assert request_auth_md5(706104024) == expected


def test_connect_round_trip():
    connect = _connect()
    frame = connect.encode()
    header = MessageHeader.decode(frame)
    decoded = Connect.decode(header, frame[12:])
    assert decoded.source_addr == "123456"
    assert decoded.authenticator_source == connect.authenticator_source
    assert decoded.version == 0x20
    assert decoded.timestamp == 1001235010
    assert decoded.check() == 0


def test_create_uses_configuration():
    connect = Connect.create()
    assert connect.source_addr == "901234"
    assert connect.header.total_length == 39
    assert connect.header.command_id == CMPP_CONNECT
    assert connect.check() == 0
    assert connect.authenticator_source == request_auth_md5(connect.timestamp)


def test_version_mismatch_returns_4():
    connect = _connect(version=0x30)
    assert connect.check() == 4
    assert connect.to_response(0).status == 4


def test_bad_authenticator_returns_3():
    connect = _connect()
    connect.authenticator_source = bytes(16)
    assert connect.check() == 3


def test_auth_check_disabled_accepts_anything():
    _configure(auth_check=False)
    connect = _connect()
    connect.authenticator_source = bytes(16)
    assert connect.check() == 0


def test_explicit_code_overrides_check():
    connect = _connect()
    resp = connect.to_response(5)
    assert resp.status == 5
    assert resp.authenticator_ismg != connect.to_response(0).authenticator_ismg
    assert len(resp.authenticator_ismg) == 16


def test_connect_resp_round_trip_v2():
    resp = _connect().to_response(0)
    frame = resp.encode()
    decoded = ConnectResp.decode(MessageHeader.decode(frame), frame[12:])
    assert decoded.status == 0
    assert decoded.authenticator_ismg == resp.authenticator_ismg
    assert decoded.version == 0x20


def test_connect_resp_round_trip_v3():
    _configure(version=0x30)
    connect = _connect(version=0x30)
    resp = connect.to_response(0)
    frame = resp.encode()
    assert len(frame) == 33
    decoded = ConnectResp.decode(MessageHeader.decode(frame), frame[12:])
    assert decoded.status == 0
    assert decoded.authenticator_ismg == resp.authenticator_ismg
    assert decoded.version == 0x30


def test_decode_errors():
    frame = _connect().encode()
    header = MessageHeader.decode(frame)
    with pytest.raises(PacketError):
        Connect.decode(None, frame[12:])
    with pytest.raises(PacketError):
        Connect.decode(header, frame[12:20])
    with pytest.raises(PacketError):
        Connect.decode(MessageHeader(39, CMPP_CONNECT_RESP, 1), frame[12:])
    with pytest.raises(PacketError):
        ConnectResp.decode(header, bytes(21))