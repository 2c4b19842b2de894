# SPDX-License-Identifier: MIT
"""Binary header map files.

A header map is the lookup table clang reads with ``-I foo.hmap`` or
``-iquote foo.hmap``: it maps an include spelling (``"Widget.h"``) to a
directory prefix and file name suffix. Layout (native little-endian):

    header   magic "hmap", version 1, reserved 0, strings offset,
             entry count, bucket count (power of two), max value length
    buckets  (key, prefix, suffix) string-table offsets; key 0 = empty
    strings  NUL-terminated strings; offset 0 is the empty string

Keys are compared case-insensitively and hashed as the sum of their
lowercased characters times 13, with linear probing.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass

HMAP_MAGIC = 0x686D6170  # 'hmap'
HMAP_VERSION = 1

_HEADER = struct.Struct("<IHHIIII")
_BUCKET = struct.Struct("<III")


def _fold(key: str) -> bytes:
    """Key bytes with ASCII letters lower-cased, as clang compares them."""
    return key.encode("utf-8").lower()


def hash_key(key: str) -> int:
    """Hash a header map key the way clang does."""
    return sum(b * 13 for b in _fold(key))


@dataclass(frozen=True)
class HeaderMapEntry:
    key: str
    prefix: str
    suffix: str

    @property
    def path(self) -> str:
        return self.prefix + self.suffix


class HeaderMap:
    """An in-memory header map.

    Example:
        hmap = HeaderMap()
        hmap.add("Widget.h", "/src/ui/", "Widget.h")
        data = hmap.encode()
    """

    def __init__(self) -> None:
        self._entries: dict[bytes, HeaderMapEntry] = {}

    def add(self, key: str, prefix: str, suffix: str) -> bool:
        """Add an entry. The first entry for a key (case-insensitive) wins.

        Returns:
            True if the entry was added.
        """
        folded = _fold(key)
        if folded in self._entries:
            return False
        self._entries[folded] = HeaderMapEntry(key, prefix, suffix)
        return True

    def lookup(self, key: str) -> HeaderMapEntry | None:
        return self._entries.get(_fold(key))

    @property
    def entries(self) -> list[HeaderMapEntry]:
        return list(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def encode(self) -> bytes:
        """Serialize to the binary header map format."""
        num_buckets = 8
        while num_buckets < 2 * len(self._entries):
            num_buckets *= 2

        strings = bytearray(b"\0")
        offsets: dict[str, int] = {}

        def intern(value: str) -> int:
            if value not in offsets:
                offsets[value] = len(strings)
                strings.extend(value.encode("utf-8") + b"\0")
            return offsets[value]

        buckets = [(0, 0, 0)] * num_buckets
        max_value_length = 0
        for entry in self._entries.values():
            slot = hash_key(entry.key) & (num_buckets - 1)
            while buckets[slot][0] != 0:
                slot = (slot + 1) & (num_buckets - 1)
            buckets[slot] = (
                intern(entry.key),
                intern(entry.prefix),
                intern(entry.suffix),
            )
            value_length = len((entry.prefix + entry.suffix).encode("utf-8"))
            max_value_length = max(max_value_length, value_length)

        strings_offset = _HEADER.size + _BUCKET.size * num_buckets
        out = bytearray(
            _HEADER.pack(
                HMAP_MAGIC,
                HMAP_VERSION,
                0,
                strings_offset,
                len(self._entries),
                num_buckets,
                max_value_length,
            )
        )
        for bucket in buckets:
            out.extend(_BUCKET.pack(*bucket))
        out.extend(strings)
        return bytes(out)

    @classmethod
    def decode(cls, data: bytes) -> HeaderMap:
        """Parse a binary header map.

        Raises:
            ValueError: If the data is not a header map.
        """
        if len(data) < _HEADER.size:
            raise ValueError("header map is truncated")

        byte_order = "<"
        magic = struct.unpack_from("<I", data)[0]
        if magic != HMAP_MAGIC:
            byte_order = ">"
            magic = struct.unpack_from(">I", data)[0]
            if magic != HMAP_MAGIC:
                raise ValueError("not a header map (bad magic)")

        header = struct.Struct(byte_order + "IHHIIII")
        bucket_struct = struct.Struct(byte_order + "III")
        _, version, _, strings_offset, _, num_buckets, _ = header.unpack_from(data)
        if version != HMAP_VERSION:
            raise ValueError(f"unsupported header map version {version}")
        if (
            len(data) < header.size + num_buckets * bucket_struct.size
            or strings_offset > len(data)
        ):
            raise ValueError("header map is truncated")

        def string_at(offset: int) -> str:
            start = strings_offset + offset
            end = data.index(b"\0", start)
            return data[start:end].decode("utf-8")

        hmap = cls()
        for i in range(num_buckets):
            key, prefix, suffix = bucket_struct.unpack_from(
                data, header.size + i * bucket_struct.size
            )
            if key == 0:
                continue
            hmap.add(string_at(key), string_at(prefix), string_at(suffix))
        return hmap
