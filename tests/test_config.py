from datetime import timedelta

import pytest

from smsgw.config import ConfigError, YamlConfig, load_config, parse_duration

SAMPLE = """\
source-addr: 901234
shared-secret: secret
version: 0x30
auth-check: true
success-rate: 0.5
active-test-duration: 10s
fee-code: "05"
Nested:
  Inner: value
phones: [a, b]
"""


@pytest.fixture
def sample_file(tmp_path):
    path = tmp_path / "sample.yaml"
    path.write_text(SAMPLE, encoding="utf-8")
    return path


def test_typed_values_from_file(sample_file):
    conf = YamlConfig.from_file(sample_file)
    assert conf.get_string("source-addr") == "901234"
    assert conf.get_string("shared-secret") == "secret"
    assert conf.get_int("version") & 0xF0 == 0x30
    assert conf.get_bool("auth-check") is True
    assert conf.get_float("success-rate") == 0.5
    assert conf.get_duration("active-test-duration") == parse_duration("10s")
    assert conf.get_string("fee-code") == "05"
    assert conf.get_string_list("phones") == ["a", "b"]


def test_keys_are_case_insensitive_and_dotted(sample_file):
    conf = YamlConfig.from_file(sample_file)
    assert conf.get_string("nested.inner") == "value"
    assert conf.get_string("NESTED.Inner") == "value"
    assert conf.get("nested") == {"inner": "value"}


def test_missing_keys_give_zero_values(sample_file):
    conf = YamlConfig.from_file(sample_file)
    assert conf.get("missing") is None
    assert conf.get_string("missing") == ""
    assert conf.get_int("missing") == 0
    assert conf.get_bool("missing") is False
    assert conf.get_float("missing") == 0.0
    assert conf.get_duration("missing") == timedelta(0)
    assert conf.get_string_list("missing") == []


def test_string_values_are_converted():
    conf = YamlConfig({"count": "12", "flag": "1", "rate": "2.5", "words": "x y  z"})
    assert conf.get_int("count") == 12
    assert conf.get_bool("flag") is True
    assert conf.get_float("rate") == 2.5
    assert conf.get_string_list("words") == ["x", "y", "z"]


def test_unparsable_values_fall_back():
    conf = YamlConfig({"count": "many", "flag": "maybe", "wait": "soon"})
    assert conf.get_int("count") == 0
    assert conf.get_bool("flag") is False
    assert conf.get_duration("wait") == timedelta(0)


def test_bool_renders_as_string():
    conf = YamlConfig({"auth-check": True})
    assert conf.get_string("auth-check") == "true"


def test_numeric_duration_is_nanoseconds():
    conf = YamlConfig({"seconds": 2_000_000_000, "bare": "1000000"})
    assert conf.get_duration("seconds") == parse_duration("2s")
    assert conf.get_duration("bare") == parse_duration("1ms")


def test_parse_duration_values():
    assert parse_duration("1h30m") == timedelta(hours=1, minutes=30)
    assert parse_duration("500ms") == timedelta(milliseconds=500)
    assert parse_duration("0") == timedelta(0)


def test_parse_duration_invariants():
    assert parse_duration("90s") == parse_duration("1m30s")
    assert parse_duration("-2s") == -parse_duration("2s")
    assert parse_duration("+2s") == parse_duration("2s")
    assert parse_duration("1.5h") == parse_duration("1h30m")
    assert parse_duration("1000us") == parse_duration("1ms")


@pytest.mark.parametrize("text", ["", "abc", "10", "1x", "-", "s", "1h 2m"])
def test_parse_duration_rejects(text):
    with pytest.raises(ValueError):
        parse_duration(text)


def test_reload_picks_up_changes(tmp_path):
    path = tmp_path / "conf.yaml"
    path.write_text("limit: 1\n", encoding="utf-8")
    conf = YamlConfig.from_file(path)
    assert conf.get_int("limit") == 1
    path.write_text("limit: 2\n", encoding="utf-8")
    conf.reload()
    assert conf.get_int("limit") == 2


def test_reload_without_file_fails():
    with pytest.raises(ConfigError):
        YamlConfig({"a": 1}).reload()


def test_load_config_resolves_extension(tmp_path):
    directory = tmp_path / "config"
    directory.mkdir()
    (directory / "cmpp.yaml").write_text("worker-id: 3\n", encoding="utf-8")
    assert load_config("cmpp", tmp_path).get_int("worker-id") == 3
    assert load_config("cmpp.yaml", tmp_path).get_int("worker-id") == 3


def test_load_config_missing_file(tmp_path):
    with pytest.raises(ConfigError):
        load_config("absent", tmp_path)


def test_clone_reads_sibling_file(tmp_path):
    (tmp_path / "first.yaml").write_text("name: first\n", encoding="utf-8")
    (tmp_path / "second.yaml").write_text("name: second\n", encoding="utf-8")
    original = YamlConfig.from_file(tmp_path / "first.yaml")
    copy = original.clone("second")
    assert copy.get_string("name") == "second"
    assert original.get_string("name") == "first"


def test_non_mapping_file_is_rejected(tmp_path):
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        YamlConfig.from_file(path)


def test_invalid_yaml_is_rejected(tmp_path):
    path = tmp_path / "broken.yaml"
    path.write_text("key: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError):
        YamlConfig.from_file(path)