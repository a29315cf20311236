# iconextract/store.py - assembled .ico buffers of one module, decoded on demand

from __future__ import annotations
import io
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from PIL import Image

from .assembler import IconFileEntry, assemble, parse_icon_file
from .collector import collect
from .devpath import resolve_drive_path
from .errors import IconDecodeError, IndexOutOfRange
from .sources import open_source


def decode_icon(data: bytes) -> Image.Image:
    """Default decoder: Pillow's ICO plugin (picks the largest frame)."""
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class IconStore:
    """
    Ordered, immutable sequence of .ico buffers (one per RT_GROUP_ICON).
    Every icon_at() call decodes a fresh object owned by the caller.
    """

    def __init__(self, buffers: Iterable[bytes], source_path: str = "",
                 decoder: Optional[Callable[[bytes], object]] = None):
        self._buffers = tuple(bytes(b) for b in buffers)
        self.source_path = source_path
        self._decoder = decoder or decode_icon

    def count(self) -> int:
        return len(self._buffers)

    def __len__(self) -> int:
        return len(self._buffers)

    def _check(self, index: int) -> int:
        if index < 0 or index >= len(self._buffers):
            raise IndexOutOfRange(index, len(self._buffers))
        return index

    def icon_data(self, index: int) -> bytes:
        return self._buffers[self._check(index)]

    def entries(self, index: int) -> List[IconFileEntry]:
        _, entries = parse_icon_file(self.icon_data(index))
        return entries

    def icon_at(self, index: int):
        data = self.icon_data(index)
        try:
            return self._decoder(data)
        except (OSError, ValueError, SyntaxError) as e:
            raise IconDecodeError(index, e) from e

    def all_icons(self) -> list:
        return [self.icon_at(i) for i in range(len(self._buffers))]

    def save(self, index: int, path) -> Path:
        p = Path(path)
        p.write_bytes(self.icon_data(index))
        return p


def open_icons(path, backend: str = "auto",
               decoder: Optional[Callable[[bytes], object]] = None) -> IconStore:
    """Extract every icon group of the module at `path`; fails as a whole on any error."""
    with open_source(path, backend) as source:
        groups, images = collect(source)
        module_path = source.module_path()
    buffers = [assemble(group, images) for group in groups]
    return IconStore(buffers, resolve_drive_path(module_path), decoder)
