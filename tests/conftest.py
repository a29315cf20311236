import io, struct

import pytest
from PIL import Image

from iconextract.collector import RT_GROUP_ICON, RT_ICON
from iconextract.sources import ResourceSource


def group_dir(entries, reserved=0, rtype=1):
    """entries: iterable of (image_id, bytes_in_res[, width, height, bit_count])"""
    entries = list(entries)
    out = struct.pack("<HHH", reserved, rtype, len(entries))
    for e in entries:
        image_id, size = e[0], e[1]
        width, height, bits = (e[2], e[3], e[4]) if len(e) > 2 else (16, 16, 32)
        out += struct.pack("<BBBBHHIH", width, height, 0, 0, 1, bits, size, image_id)
    return out


def png_bytes(size=16, color=(255, 0, 0, 255)):
    buf = io.BytesIO()
    Image.new("RGBA", (size, size), color).save(buf, format="PNG")
    return buf.getvalue()


class FakeSource(ResourceSource):
    def __init__(self, groups=(), icons=(), path=r"\Device\HarddiskVolume2\app\tool.exe", fail_on=None):
        self.resources = {RT_GROUP_ICON: list(groups), RT_ICON: list(icons)}
        self.path = path
        self.fail_on = fail_on
        self.closed = False
        self.calls = []

    def iter_resources(self, kind):
        self.calls.append(kind)
        for ident, data in self.resources[kind]:
            if self.fail_on is not None and ident == self.fail_on:
                from iconextract.errors import ResourceAccessError
                raise ResourceAccessError(f"LockResource({ident!r})", 1814)
            yield kind, ident, data

    def module_path(self):
        return self.path

    def close(self):
        self.closed = True


@pytest.fixture
def fake_source():
    return FakeSource


def build_pe(resources):
    """
    Minimal PE32 image whose only section is .rsrc.
    resources: [(type_id, [(ident, data), ...]), ...]; a str ident becomes a named entry
    (list named entries first, as the linker does). Every resource gets language 0x409.
    """
    section_rva, file_align = 0x1000, 0x200
    flat = [e for _, entries in resources for e in entries]

    # layout: root dir, type dirs, language dirs, data entries, name strings, blobs
    off = 16 + 8 * len(resources)
    type_dirs = []
    for _, entries in resources:
        type_dirs.append(off)
        off += 16 + 8 * len(entries)
    lang_dirs = []
    for _ in flat:
        lang_dirs.append(off)
        off += 16 + 8
    data_entries = []
    for _ in flat:
        data_entries.append(off)
        off += 16
    names = {}
    for k, (ident, _) in enumerate(flat):
        if isinstance(ident, str):
            names[k] = off
            off += 2 + 2 * len(ident)
    blobs = []
    for _, data in flat:
        off = (off + 3) & ~3
        blobs.append(off)
        off += len(data)

    rsrc = bytearray(off)
    struct.pack_into("<IIHHHH", rsrc, 0, 0, 0, 0, 0, 0, len(resources))
    k = 0
    for t, (type_id, entries) in enumerate(resources):
        struct.pack_into("<II", rsrc, 16 + 8 * t, type_id, 0x80000000 | type_dirs[t])
        named = sum(isinstance(ident, str) for ident, _ in entries)
        struct.pack_into("<IIHHHH", rsrc, type_dirs[t], 0, 0, 0, 0, named, len(entries) - named)
        for j, (ident, data) in enumerate(entries):
            name = (0x80000000 | names[k]) if isinstance(ident, str) else ident
            struct.pack_into("<II", rsrc, type_dirs[t] + 16 + 8 * j, name, 0x80000000 | lang_dirs[k])
            struct.pack_into("<IIHHHHII", rsrc, lang_dirs[k], 0, 0, 0, 0, 0, 1, 0x409, data_entries[k])
            struct.pack_into("<IIII", rsrc, data_entries[k], section_rva + blobs[k], len(data), 0, 0)
            if isinstance(ident, str):
                struct.pack_into("<H", rsrc, names[k], len(ident))
                rsrc[names[k] + 2:names[k] + 2 + 2 * len(ident)] = ident.encode("utf-16-le")
            rsrc[blobs[k]:blobs[k] + len(data)] = data
            k += 1

    raw_size = (len(rsrc) + file_align - 1) // file_align * file_align
    image_size = section_rva + (len(rsrc) + 0xFFF) // 0x1000 * 0x1000
    dos = b"MZ" + b"\x00" * 58 + struct.pack("<I", 0x40)
    file_header = struct.pack("<HHIIIHH", 0x14C, 1, 0, 0, 0, 0xE0, 0x0102)
    optional = struct.pack(
        "<HBB9I6H4I2H6I",
        0x10B, 14, 0,
        0, raw_size, 0, 0, 0, 0, 0x400000, 0x1000, file_align,
        6, 0, 0, 0, 6, 0,
        0, image_size, file_align, 0,
        2, 0,
        0x100000, 0x1000, 0x100000, 0x1000, 0, 16)
    directories = [(0, 0)] * 16
    directories[2] = (section_rva, len(rsrc))
    optional += b"".join(struct.pack("<II", rva, size) for rva, size in directories)
    section = struct.pack("<8sIIIIIIHHI", b".rsrc", len(rsrc), section_rva, raw_size, file_align,
                          0, 0, 0, 0, 0x40000040)
    headers = dos + b"PE\x00\x00" + file_header + optional + section
    return headers.ljust(file_align, b"\x00") + bytes(rsrc).ljust(raw_size, b"\x00")
