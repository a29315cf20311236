# iconextract/collector.py - gather RT_GROUP_ICON directories and the RT_ICON id table

from __future__ import annotations
from types import MappingProxyType
from typing import Dict, Mapping, Tuple

from .errors import DuplicateImageIdentifier, ResourceAccessError

RT_ICON = 3
RT_GROUP_ICON = 14


def collect(source) -> Tuple[Tuple[bytes, ...], Mapping[int, bytes]]:
    """
    Two passes over the source:
      1) RT_GROUP_ICON in enumeration order (that order is the public icon index)
      2) RT_ICON keyed by numeric resource id
    Returns (group directories, read-only id -> image bytes mapping).
    """
    groups = tuple(bytes(data) for _, _, data in source.iter_resources(RT_GROUP_ICON))

    images: Dict[int, bytes] = {}
    for _, ident, data in source.iter_resources(RT_ICON):
        if not isinstance(ident, int):
            raise ResourceAccessError(f"RT_ICON resource has non-numeric name {ident!r}")
        if ident in images:
            raise DuplicateImageIdentifier(ident)
        images[ident] = bytes(data)

    return groups, MappingProxyType(images)
