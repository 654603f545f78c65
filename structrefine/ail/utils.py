from __future__ import annotations
from typing import TYPE_CHECKING
import struct
import hashlib

if TYPE_CHECKING:
    from .expression import Expression


def get_bits(expr: int | Expression) -> int | None:
    # delayed import
    from .expression import Expression  # pylint:disable=import-outside-toplevel

    if isinstance(expr, Expression):
        return expr.bits
    if hasattr(expr, "bits"):
        return expr.bits
    return None


md5_unpacker = struct.Struct("4I")


def stable_hash(t: tuple) -> int:
    cnt = _dump_tuple(t)
    hd = hashlib.md5(cnt).digest()
    return md5_unpacker.unpack(hd)[0]  # 32 bits


def _dump_tuple(t: tuple) -> bytes:
    cnt = b""
    for item in t:
        if item is not None:
            type_ = type(item)
            if type_ in _DUMP_BY_TYPE:
                cnt += _DUMP_BY_TYPE[type_](item)
            else:
                # for TaggedObjects, hash(item) is stable
                cnt += struct.pack("<Q", hash(item) & 0xFFFF_FFFF_FFFF_FFFF)
        cnt += b"\xf0"
    return cnt


def _dump_str(t: str) -> bytes:
    return t.encode("ascii", "backslashreplace")


def _dump_int(t: int) -> bytes:
    prefix = b"" if t >= 0 else b"-"
    t = abs(t)
    if t <= 0xFFFF:
        return prefix + struct.pack("<H", t)
    if t <= 0xFFFF_FFFF:
        return prefix + struct.pack("<I", t)
    if t <= 0xFFFF_FFFF_FFFF_FFFF:
        return prefix + struct.pack("<Q", t)
    cnt = b""
    while t > 0:
        cnt += _dump_int(t & 0xFFFF_FFFF_FFFF_FFFF)
        t >>= 64
    return prefix + cnt


def _dump_bool(t: bool) -> bytes:
    return b"\x01" if t else b"\x00"


def _dump_type(t: type) -> bytes:
    return t.__name__.encode("ascii")


_DUMP_BY_TYPE = {
    tuple: _dump_tuple,
    str: _dump_str,
    int: _dump_int,
    bool: _dump_bool,
    type: _dump_type,
}


def is_none_or_likeable(arg1, arg2, is_list=False):
    """
    Returns whether two things are both None or can like each other
    """
    if arg1 is None or arg2 is None:
        return arg1 is arg2
    if is_list:
        return len(arg1) == len(arg2) and all(is_none_or_likeable(a1, a2) for a1, a2 in zip(arg1, arg2))
    if isinstance(arg1, int) or isinstance(arg2, int):
        return arg1 == arg2
    return arg1.likes(arg2)
