"""Optional settings for CMPP_SUBMIT messages, applied as option callables."""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Callable

from smsgw.util import format_time

UNSET = 0x0F
_FEE_TYPES = {"01", "02", "03", "04", "05"}


@dataclass
class MtOptions:
    """Submit settings; numeric fields left at 0x0F and empty strings take config defaults."""

    registered_del: int = UNSET
    msg_level: int = UNSET
    fee_usertype: int = UNSET
    fee_terminal_type: int = UNSET
    service_id: str = ""
    fee_terminal_id: str = ""
    fee_type: str = ""
    fee_code: str = ""
    valid_time: str = ""
    at_time: str = ""
    src_id: str = ""
    link_id: str = ""


Option = Callable[[MtOptions], None]


def load_options(*args: Option) -> MtOptions:
    """Apply the given options, in order, to a fresh set of defaults."""
    opts = MtOptions()
    for option in args:
        option(opts)
    return opts


def _setter(name: str, value: object) -> Option:
    def apply(opts: MtOptions) -> None:
        setattr(opts, name, value)

    return apply


def with_options(opts: MtOptions) -> Option:
    """Copy every setting from ``opts``."""

    def apply(target: MtOptions) -> None:
        for item in fields(MtOptions):
            setattr(target, item.name, getattr(opts, item.name))

    return apply


def mt_fee_terminal_type(value: int) -> Option:
    """Charged number type: 0 real number, 1 pseudo number."""
    return _setter("fee_terminal_type", value if value in (0, 1) else UNSET)


def mt_fee_usertype(value: int) -> Option:
    """Who is charged: 0 destination, 1 source, 2 SP, 3 see fee terminal id."""
    return _setter("fee_usertype", value if value in (0, 1, 2, 3) else UNSET)


def mt_link_id(value: str) -> Option:
    return _setter("link_id", value)


def mt_src_id(value: str) -> Option:
    """Number shown to the recipient as the sender."""
    return _setter("src_id", value)


def mt_at_time(moment: datetime) -> Option:
    """Scheduled delivery time."""
    return _setter("at_time", format_time(moment))


def mt_at_time_str(value: str) -> Option:
    """Scheduled delivery time given as ``yyMMddHHmmss``."""
    return _setter("at_time", value[:12] + "032+")


def mt_valid_time(value: str) -> Option:
    return _setter("valid_time", value)


def mt_fee_code(value: str) -> Option:
    """Fee in cents."""
    return _setter("fee_code", value)


def mt_fee_type(value: str) -> Option:
    """Fee category ``01``-``05``; anything else is dropped."""
    return _setter("fee_type", value if value in _FEE_TYPES else "")


def mt_fee_terminal_id(value: str) -> Option:
    return _setter("fee_terminal_id", value)


def mt_service_id(value: str) -> Option:
    return _setter("service_id", value)


def mt_registered_del(value: int) -> Option:
    """Whether a status report is requested: 0 or 1."""
    return _setter("registered_del", value if value in (0, 1) else UNSET)


def mt_msg_level(value: int) -> Option:
    """Message priority 0-9."""
    return _setter("msg_level", value if 0 <= value <= 9 else UNSET)