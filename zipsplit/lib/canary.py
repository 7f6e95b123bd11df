"""Canary class files for secondary archives.

A canary is a tiny, valid class file injected into each secondary archive so
that every archive is non-empty and can be identified by loading a single
well-known class, e.g. ``secondary.dex02.Canary``.
"""

from __future__ import annotations

import struct

from zipsplit.lib.entries import Entry

__all__ = ["canary_class_name", "create_canary", "CANARY_PREFIX"]

CANARY_PREFIX = "secondary"

_MAGIC = 0xCAFEBABE
# Java 6 class files are accepted by every dexer version
_MAJOR_VERSION = 50
_ACC_PUBLIC_SUPER = 0x0021
_CONSTANT_UTF8 = 1
_CONSTANT_CLASS = 7


def canary_class_name(index: int, prefix: str = CANARY_PREFIX) -> str:
    """Internal (slash separated) class name of the canary for ``index``."""
    return f"{prefix}/dex{index:02d}/Canary"


def _utf8(value: str) -> bytes:
    encoded = value.encode("utf-8")
    return struct.pack(">BH", _CONSTANT_UTF8, len(encoded)) + encoded


def _class_ref(name_index: int) -> bytes:
    return struct.pack(">BH", _CONSTANT_CLASS, name_index)


def _class_file_bytes(class_name: str) -> bytes:
    constant_pool = b"".join([
        _utf8(class_name),          # 1
        _class_ref(1),              # 2
        _utf8("java/lang/Object"),  # 3
        _class_ref(3),              # 4
    ])
    header = struct.pack(">IHH", _MAGIC, 0, _MAJOR_VERSION)
    body = struct.pack(
        ">HHHHHHH",
        _ACC_PUBLIC_SUPER,
        2,  # this_class
        4,  # super_class
        0,  # interfaces
        0,  # fields
        0,  # methods
        0,  # attributes
    )
    return header + struct.pack(">H", 5) + constant_pool + body


def create_canary(index: int, prefix: str = CANARY_PREFIX) -> Entry:
    """Build the canary entry for the secondary archive numbered ``index``.

    The content depends only on ``index`` and ``prefix``, so repeated runs
    produce byte-identical canaries.
    """
    if index < 1:
        raise ValueError(f"Secondary archive index must be >= 1, got {index}")
    class_name = canary_class_name(index, prefix)
    return Entry.from_bytes(
        f"{class_name}.class",
        _class_file_bytes(class_name),
        origin="canary",
    )
