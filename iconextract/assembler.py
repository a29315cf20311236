# iconextract/assembler.py - rebuild a standalone .ico from RT_GROUP_ICON + RT_ICON blobs

from __future__ import annotations
import struct
from functools import reduce
from typing import List, Mapping, NamedTuple, Tuple

from .errors import MalformedGroupDirectory, MissingImageData

# Layouts (https://learn.microsoft.com/en-us/previous-versions/ms997538(v=msdn.10)):
#   GRPICONDIR / ICONDIR         WORD idReserved; WORD idType; WORD idCount;
#   GRPICONDIRENTRY (14 bytes)   BYTE w,h,colors,res; WORD planes,bitcount; DWORD bytesInRes; WORD nID
#   ICONDIRENTRY    (16 bytes)   same first 12 bytes, then DWORD dwImageOffset
HEADER = struct.Struct("<HHH")
GROUP_ENTRY = struct.Struct("<BBBBHHIH")
ICO_ENTRY = struct.Struct("<BBBBHHII")
ICO_OFFSET = struct.Struct("<I")

HEADER_SIZE = HEADER.size            # 6
GROUP_ENTRY_SIZE = GROUP_ENTRY.size  # 14
ICO_ENTRY_SIZE = ICO_ENTRY.size      # 16
SHARED_PREFIX = 12                   # bytes identical between GRPICONDIRENTRY and ICONDIRENTRY


class GroupIconHeader(NamedTuple):
    reserved: int
    type: int
    count: int


class GroupIconEntry(NamedTuple):
    width: int          # 0 means 256
    height: int         # 0 means 256
    color_count: int
    reserved: int
    planes: int
    bit_count: int
    bytes_in_res: int
    image_id: int


class IconFileEntry(NamedTuple):
    width: int
    height: int
    color_count: int
    reserved: int
    planes: int
    bit_count: int
    bytes_in_res: int
    image_offset: int


def _entry_count(directory: bytes) -> int:
    if len(directory) < HEADER_SIZE:
        raise MalformedGroupDirectory(
            f"group directory is {len(directory)} bytes, header needs {HEADER_SIZE}")
    count = HEADER.unpack_from(directory, 0)[2]
    need = HEADER_SIZE + GROUP_ENTRY_SIZE * count
    if len(directory) < need:
        raise MalformedGroupDirectory(
            f"group directory declares {count} entries ({need} bytes) but holds {len(directory)}")
    return count


def _entry_at(directory: bytes, i: int) -> bytes:
    off = HEADER_SIZE + GROUP_ENTRY_SIZE * i
    return directory[off:off + GROUP_ENTRY_SIZE]


def parse_group_directory(directory: bytes) -> Tuple[GroupIconHeader, List[GroupIconEntry]]:
    """Decode the header and every entry of a raw RT_GROUP_ICON buffer."""
    count = _entry_count(directory)
    header = GroupIconHeader(*HEADER.unpack_from(directory, 0))
    entries = [GroupIconEntry(*GROUP_ENTRY.unpack(_entry_at(directory, i))) for i in range(count)]
    return header, entries


def parse_icon_file(data: bytes) -> Tuple[GroupIconHeader, List[IconFileEntry]]:
    """Header and ICONDIRENTRY records of an assembled .ico buffer."""
    if len(data) < HEADER_SIZE:
        raise MalformedGroupDirectory(f"icon file is {len(data)} bytes, header needs {HEADER_SIZE}")
    header = GroupIconHeader(*HEADER.unpack_from(data, 0))
    if len(data) < HEADER_SIZE + ICO_ENTRY_SIZE * header.count:
        raise MalformedGroupDirectory(f"icon file too short for {header.count} entries")
    entries = [IconFileEntry(*ICO_ENTRY.unpack_from(data, HEADER_SIZE + ICO_ENTRY_SIZE * i))
               for i in range(header.count)]
    return header, entries


def assemble(directory: bytes, images: Mapping[int, bytes]) -> bytes:
    """
    Build an ICO file out of one group directory and the RT_ICON table:
      ICONDIR (copied verbatim from the group header)
      ICONDIRENTRY[count] (first 12 bytes verbatim, nID replaced by the absolute offset)
      image blobs concatenated in directory order
    Raises MalformedGroupDirectory / MissingImageData; never returns a partial buffer.
    """
    directory = bytes(directory)
    _, entries = parse_group_directory(directory)

    def step(acc, indexed):
        offset, records, payloads = acc
        i, entry = indexed
        blob = images.get(entry.image_id)
        if blob is None:
            raise MissingImageData(entry.image_id)
        blob = bytes(blob)
        record = _entry_at(directory, i)[:SHARED_PREFIX] + ICO_OFFSET.pack(offset)
        return offset + len(blob), records + (record,), payloads + (blob,)

    base = HEADER_SIZE + ICO_ENTRY_SIZE * len(entries)
    _, records, payloads = reduce(step, enumerate(entries), (base, (), ()))
    return directory[:HEADER_SIZE] + b"".join(records) + b"".join(payloads)
