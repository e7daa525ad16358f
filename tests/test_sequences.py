import threading
import time
from datetime import datetime

import pytest

from smsgw.sequences import (
    BcdSequence,
    CycleSequence,
    Snowflake,
    Snowflake32,
    bcd_to_string,
    int_to_fix_str,
    sto_bcd,
)


def _seconds_since_midnight():
    now = datetime.now()
    return now.hour * 3600 + now.minute * 60 + now.second


def test_bcd_to_string_source_case():
    assert bcd_to_string(bytes([0x01, 0x23, 0x45, 0x67, 0x8A])) == "0123456789"


def test_sto_bcd_source_case():
    assert sto_bcd("012345678a") == bytes([0x01, 0x23, 0x45, 0x67, 0x89])


def test_sto_bcd_odd_length_keeps_high_nibble():
    assert sto_bcd("123") == b"\x12\x30"


def test_sto_bcd_odd_trailing_zero_is_dropped():
    assert sto_bcd("120") == b"\x12"


@pytest.mark.parametrize("digits", ["0000", "20240131", "999999", "000001"])
def test_bcd_round_trip(digits):
    assert bcd_to_string(sto_bcd(digits)) == digits


@pytest.mark.parametrize(
    "value,length,expected",
    [(42, 6, "000042"), (123456, 6, "123456"), (1234567, 6, "234567"), (0, 3, "000"), (5, 0, "")],
)
def test_int_to_fix_str(value, length, expected):
    assert int_to_fix_str(value, length) == expected


@pytest.mark.parametrize(
    "worker,expected",
    [
        ("000001", b"\x00\x00\x01"),
        ("12", b"\x00\x00\x12"),
        ("1234567", b"\x23\x45\x67"),
        ("12ab", b"\x00\x00\x00"),
        ("", b"\x00\x00\x00"),
    ],
)
def test_bcd_sequence_worker(worker, expected):
    assert BcdSequence(worker).worker == expected


def test_bcd_sequence_layout():
    seq = BcdSequence("000001")
    before = datetime.now().strftime("%m%d%H%M")
    value = seq.next_val()
    after = datetime.now().strftime("%m%d%H%M")
    assert len(value) == 10
    assert value[:3] == b"\x00\x00\x01"
    assert bcd_to_string(value[3:7]) in {before, after}
    assert bcd_to_string(value[7:]) == "000000"


def test_bcd_sequence_increments_within_minute():
    seq = BcdSequence("000001")
    first = seq.next_val()
    second = seq.next_val()
    n1 = int(bcd_to_string(first[7:]))
    n2 = int(bcd_to_string(second[7:]))
    expected = n1 + 1 if first[3:7] == second[3:7] else 0
    assert n2 == expected


def test_cycle_sequence_fields():
    seq = CycleSequence(1, 1)
    values = [seq.next_val() for _ in range(3)]
    assert [v & 0x03FFFFFF for v in values] == [1, 2, 3]
    assert all((v >> 28) & 0x7 == 1 for v in values)
    assert values[0] & 0xFFFFFFFF == 0x90000001
    assert values[0] < 0


def test_cycle_sequence_positive_when_datacenter_zero():
    seq = CycleSequence(0, 2)
    assert seq.next_val() == 0x20000001


def test_cycle_sequence_str():
    seq = CycleSequence(1, 1)
    seq.next_val()
    seq.next_val()
    assert str(seq) == "1:1:2"


def test_cycle_sequence_thread_safe():
    seq = CycleSequence(1, 1)
    results = []
    lock = threading.Lock()

    def work():
        local = [seq.next_val() for _ in range(500)]
        with lock:
            results.extend(local)

    threads = [threading.Thread(target=work) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert sorted(v & 0x03FFFFFF for v in results) == list(range(1, 2001))
    assert seq.next_val() & 0x03FFFFFF == 2001


def test_snowflake_fields():
    sf = Snowflake(2, 5)
    before = time.time_ns() // 1_000_000
    value = sf.next_val()
    after = time.time_ns() // 1_000_000
    assert (value >> 12) & 0x7F == 5
    assert (value >> 19) & 0x3 == 2
    assert value & 0xFFF == 0
    assert before <= (value >> 21) + 1577808000000 <= after


def test_snowflake_strictly_increasing():
    sf = Snowflake(1, 1)
    values = [sf.next_val() for _ in range(5000)]
    assert all(a < b for a, b in zip(values, values[1:]))


def test_snowflake32_fields():
    sf = Snowflake32(1, 3)
    before = _seconds_since_midnight()
    value = sf.next_val()
    after = _seconds_since_midnight()
    assert (value >> 9) & 0x7 == 3
    assert (value >> 12) & 0x3 == 1
    assert value & 0x1FF == 0
    assert before <= value >> 14 <= after
    assert str(sf) == f"{value >> 14}:1:3:0"


def test_snowflake32_unique_past_sequence_capacity():
    sf = Snowflake32(0, 1)
    values = [sf.next_val() for _ in range(600)]
    assert len(set(values)) == 600