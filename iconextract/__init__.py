"""Extract RT_GROUP_ICON resources from PE modules as standalone .ico files."""

from .assembler import GroupIconEntry, IconFileEntry, assemble, parse_group_directory, parse_icon_file
from .collector import RT_GROUP_ICON, RT_ICON, collect
from .devpath import query_dos_device, resolve_drive_path
from .errors import (
    DuplicateImageIdentifier, IconDecodeError, IconExtractError, IndexOutOfRange,
    MalformedGroupDirectory, MissingImageData, ResourceAccessError,
)
from .sources import PEFileResourceSource, ResourceSource, Win32ResourceSource, open_source
from .store import IconStore, decode_icon, open_icons

open = open_icons

__version__ = "1.0.0"

# `open` is left out so `from iconextract import *` cannot shadow the builtin
__all__ = [
    "GroupIconEntry", "IconFileEntry", "assemble", "parse_group_directory", "parse_icon_file",
    "RT_GROUP_ICON", "RT_ICON", "collect", "query_dos_device", "resolve_drive_path",
    "DuplicateImageIdentifier", "IconDecodeError", "IconExtractError", "IndexOutOfRange",
    "MalformedGroupDirectory", "MissingImageData", "ResourceAccessError",
    "PEFileResourceSource", "ResourceSource", "Win32ResourceSource", "open_source",
    "IconStore", "decode_icon", "open_icons",
]
