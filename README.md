# smsgw

Codecs and helpers for the two short-message gateway protocols used by
Chinese carriers:

* **CMPP** 2.x and 3.x, in `smsgw.cmpp`
* **SMGP**, in `smsgw.smgp`

The package encodes and decodes protocol data units (login, submit,
deliver, status reports, link tests, terminate/exit and their replies),
splits long messages into parts led by a 6-byte user data header, and
generates the sequence numbers and message ids the protocols need.
Frames go in and out as `bytes`; the package has no network layer of
its own.

## What the package does not do

There is no gateway server, client or simulator here, and no command to
run. Nothing opens sockets, keeps connections alive, applies flow
control or answers submits with replies and status reports on its own.
The message classes provide the pieces (`to_response`,
`to_delivery_report`, `new_delivery_report`, link tests) for a program
that does; that program is yours to write. Logging goes through the
standard `logging` module and is not configured by the package.

## Modules

| Module | Contents |
| --- | --- |
| `smsgw.sequences` | `CycleSequence`, `Snowflake`, `Snowflake32`, `BcdSequence`; BCD helpers `sto_bcd`, `bcd_to_string`, `int_to_fix_str` |
| `smsgw.tlv` | `Tlv`, `TlvList`, `read`, `read_object`, `write_object`, `from_bytes`, `to_bytes`; errors `TlvError`, `TlvReadError`, `TlvWriteError`, `TypeNotFoundError` |
| `smsgw.util` | `ucs2_encode`, `ucs2_decode`, `to_tpudhi_slices`, `trim_str`, `format_time`, `dice_check`, `rand_num`, `save_pid` |
| `smsgw.config` | `YamlConfig`, `load_config`, `parse_duration`, `ConfigError` |
| `smsgw.cmpp.header` | `MessageHeader`, command ids, `configure`, `context`, `is_v3`, `PacketError` |
| `smsgw.cmpp.connect` | `Connect`, `ConnectResp`, `request_auth_md5` |
| `smsgw.cmpp.active` | `ActiveTest`, `ActiveTestResp`, `new_terminate`, `new_terminate_resp` |
| `smsgw.cmpp.report` | `Report` (the 60-byte status report) |
| `smsgw.cmpp.options` | `MtOptions`, `load_options` and the `mt_*` option builders |
| `smsgw.cmpp.submit` | `Submit`, `SubmitResp`, `Delivery`, `DeliveryResp`, `new_submit`, `new_delivery`, `msg_fmt`, `msg_slices` |
| `smsgw.smgp.header` | `MessageHeader`, command ids, TLV tags, `STAT_MAP`, `configure`, `context`, `gb_encode`, `gb_decode`, `PacketError` |
| `smsgw.smgp.active` | `ActiveTest`, `ActiveTestResp`, `Exit`, `ExitResp` |
| `smsgw.smgp.login` | `Login`, `LoginResp`, `request_auth_md5` |
| `smsgw.smgp.report` | `Report` (the text-form status report) |
| `smsgw.smgp.submit` | `MtOptions`, `Submit`, `SubmitResp`, `new_submit` |
| `smsgw.smgp.deliver` | `Deliver`, `DeliverResp`, `new_deliver`, `new_delivery_report` |

## Configuration

Both codecs take their defaults (addresses, shared secret, protocol
version, service id, fee settings and so on) from a `YamlConfig`. Keys
are case-insensitive and may be dotted to reach nested mappings.
Converted values are cached per key; the cache is dropped by
`reload()`, or automatically on the next lookup after the file's
modification time changes.

```python
from smsgw.config import YamlConfig, load_config

conf = YamlConfig.from_file("config/cmpp.yaml")
conf = load_config("cmpp")          # ./config/cmpp.yaml or cmpp.yml
conf.get_duration("default-valid-duration")   # -> datetime.timedelta
```

A CMPP configuration:

```yaml
version: 0x30                 # 0x2? selects CMPP 2.x, 0x3? selects 3.x
source-addr: "900001"
shared-secret: secret
auth-check: true
sms-display-no: "1069"
service-id: "TEST"
fee-user-type: 2
fee-terminal-type: 0
fee-terminal-id: ""
fee-type: "02"
fee-code: "10"
link-id: ""
need-report: 1
default-msg-level: 1
default-valid-duration: 2h
```

SMGP reads `version`, `client-id`, `shared-secret`, `auth-check`,
`sms-display-no`, `service-id`, `need-report`, `Priority`, `fee-type`,
`fee-code`, `fixed-fee`, `charge-term-id` and `default-valid-duration`.
Durations such as `2h`, `30s`, `1h30m` or `500ms` are parsed by
`parse_duration`.

## CMPP

Install the configuration and sequence generators once with
`configure`; building a message before that raises `RuntimeError`.

```python
from smsgw.config import YamlConfig
from smsgw.sequences import CycleSequence, Snowflake
from smsgw.cmpp.header import HEAD_LENGTH, MessageHeader, configure
from smsgw.cmpp.connect import Connect
from smsgw.cmpp.options import mt_registered_del
from smsgw.cmpp.submit import Submit, new_submit

conf = YamlConfig.from_file("config/cmpp.yaml")
configure(conf, CycleSequence(1, 1), Snowflake(1, 1), CycleSequence(1, 1))

login_frame = Connect.create().encode()

for part in new_submit(["10086"], "hello world", mt_registered_del(1)):
    frame = part.encode()
    # send frame ...

# receiving side
header = MessageHeader.decode(frame[:HEAD_LENGTH])
submit = Submit.decode(header, frame[HEAD_LENGTH:])
reply = submit.to_response(0)           # carries a fresh 64-bit msg id
report = submit.to_delivery_report(reply.msg_id)
```

`Connect.check()` returns 0 on success, 3 on an authentication failure
(only when `auth-check` is on) and 4 when the major version differs.
Single-byte text is sent as ASCII (format 0), anything else as UCS-2
(format 8); long text is split into parts of at most 160 (ASCII) or 140
(UCS-2) bytes, each with its own sequence id. `new_delivery` builds a
mobile-originated message cut to 160 ASCII or 70 UCS-2 characters.

## SMGP

```python
from smsgw.config import YamlConfig
from smsgw.sequences import BcdSequence, CycleSequence
from smsgw.smgp.header import configure
from smsgw.smgp.login import Login
from smsgw.smgp.submit import MtOptions, new_submit
from smsgw.smgp.deliver import new_delivery_report

conf = YamlConfig.from_file("config/smgp.yaml")
configure(conf, CycleSequence(1, 1), BcdSequence("000001"))

login_frame = Login.create().encode()

parts = new_submit(["10086"], "你好，世界", MtOptions())
frames = [part.encode() for part in parts]

reply = parts[0].to_response(0)          # carries a 10-byte BCD msg id
report = new_delivery_report(parts[0], reply.msg_id)
```

SMGP text travels in GB18030 (`new_submit` returns an empty list for
text that cannot be encoded). Long text is split into 140-byte parts
and each part carries TP_pid, TP_udhi, PkTotal and PkNumber in its TLV
list. `Login.check()` returns 0, 21 (authentication) or 22 (version).
`new_deliver` builds a mobile-originated message cut to 70 characters.

## Sequences

* `CycleSequence(datacenter, worker)` – 32-bit cycling ids with a 26-bit counter.
* `Snowflake(datacenter_id, worker_id)` – 64-bit ids from milliseconds since 2020.
* `Snowflake32(datacenter, worker)` – 32-bit ids unique within a day; more than 512 per second block until the next second.
* `BcdSequence(worker)` – 10-byte BCD ids: 6-digit gateway code, `MMDDHHMM`, 6-digit counter.

All are thread-safe and expose `next_val()`.

## Errors

Decoding a frame that is too short or has the wrong command id raises
`PacketError` from the matching `header` module; so does encoding a
message whose body does not fit its declared length. TLV problems raise
subclasses of `smsgw.tlv.TlvError`, and configuration problems raise
`smsgw.config.ConfigError`.