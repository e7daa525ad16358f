import pytest

from smsgw.config import YamlConfig
from smsgw.sequences import BcdSequence, CycleSequence
from smsgw.smgp.deliver import (
    Deliver,
    DeliverResp,
    new_deliver,
    new_delivery_report,
)
from smsgw.smgp.header import (
    CMD_DELIVER_RESP,
    CMD_SUBMIT,
    MessageHeader,
    PacketError,
    configure,
)
from smsgw.smgp.report import RPT_LEN
from smsgw.smgp.submit import MtOptions, new_submit


@pytest.fixture(autouse=True)
def smgp_context():
    conf = YamlConfig(
        {
            "sms-display-no": "1069",
            "service-id": "svc01",
            "fee-type": "01",
            "fee-code": "000000",
            "fixed-fee": "000000",
            "need-report": 1,
            "Priority": 1,
            "default-valid-duration": "2h",
        }
    )
    return configure(conf, CycleSequence(1, 1), BcdSequence("000001"))


def _round_trip(dlv):
    data = dlv.encode()
    assert len(data) == dlv.header.packet_length
    head = MessageHeader.decode(data)
    dec = Deliver.decode(head, data[12:])
    assert dec.header.sequence_id == dlv.header.sequence_id

    resp = dlv.to_response(0)
    rdata = resp.encode()
    assert len(rdata) == resp.header.packet_length == 26
    rhead = MessageHeader.decode(rdata)
    assert rhead.request_id == CMD_DELIVER_RESP
    rdec = DeliverResp.decode(rhead, rdata[12:])
    assert rdec.header.sequence_id == dlv.header.sequence_id
    assert rdec.msg_id == resp.msg_id
    return dec


def test_deliver_round_trip():
    dlv = new_deliver("123", "95535", "TD:123456")
    assert dlv.dest_term_id == "106995535"
    assert dlv.header.packet_length == 89 + 9
    dec = _round_trip(dlv)
    assert not dec.is_report()
    assert dec.msg_content == "TD:123456"
    assert dec.src_term_id == "123"
    assert dec.dest_term_id == "106995535"
    assert dec.msg_id == dlv.msg_id


def test_deliver_chinese_text():
    dlv = new_deliver("10001", "1", "hello word 中国")
    dec = _round_trip(dlv)
    assert dec.msg_content == "hello word 中国"
    assert dec.msg_length == len("hello word ") + 4


def test_deliver_text_is_cut_to_seventy_characters():
    dlv = new_deliver("10001", "1", "a" * 100)
    assert dlv.msg_content == "a" * 70
    assert dlv.msg_length == 70
    assert dlv.header.packet_length == 159


def test_report_round_trip():
    mt = new_submit(["10003"], "hello world，世界", MtOptions())[0]
    resp = mt.to_response(0)
    rpt = new_delivery_report(mt, resp.msg_id)
    assert rpt.is_report()
    assert rpt.header.packet_length == 89 + RPT_LEN
    assert rpt.src_term_id == "10003"
    assert rpt.dest_term_id == mt.src_term_id
    dec = _round_trip(rpt)
    assert dec.is_report()
    assert dec.report.msg_id == resp.msg_id
    assert dec.report.stat == rpt.report.stat


def test_decode_wrong_command_raises():
    dlv = new_deliver("123", "1", "x")
    data = dlv.encode()
    head = MessageHeader.decode(data)
    head.request_id = CMD_SUBMIT
    with pytest.raises(PacketError):
        Deliver.decode(head, data[12:])


def test_decode_short_frame_raises():
    dlv = new_deliver("123", "1", "hello")
    data = dlv.encode()
    head = MessageHeader.decode(data)
    with pytest.raises(PacketError):
        Deliver.decode(head, data[12:-10])


def test_str_mentions_content():
    dlv = new_deliver("123", "1", "line1\nline2")
    assert 'msgContent: "line1 line2"' in str(dlv)