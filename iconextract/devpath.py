# iconextract/devpath.py - turn "\Device\HarddiskVolume2\..." into "C:\..."

from __future__ import annotations
import string
import sys
from typing import Callable, Optional

MAX_PATH = 260


def query_dos_device(drive: str) -> Optional[str]:
    """Device name behind a drive letter ("C:"), or None when unmapped / not on Windows."""
    if sys.platform != "win32":
        return None
    import ctypes
    kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
    buf = ctypes.create_unicode_buffer(MAX_PATH)
    if not kernel32.QueryDosDeviceW(drive, buf, MAX_PATH):
        return None
    # the result is a multi-string; the first entry is the current mapping
    return buf.value or None


def resolve_drive_path(device_path: str,
                       query: Callable[[str], Optional[str]] = query_dos_device) -> str:
    """
    Probe A: .. Z: and rewrite the first drive whose device name prefixes device_path.
    Unmapped letters are skipped; with no match the input comes back unchanged.
    """
    for letter in string.ascii_uppercase:
        drive = letter + ":"
        device = query(drive)
        if not device:
            continue
        if device_path.startswith(device):
            return drive + device_path[len(device):]
    return device_path
