# iconextract/sources.py - enumerate raw PE resources (pefile everywhere, Win32 loader on Windows)

from __future__ import annotations
import os, sys
from typing import Iterator, Optional, Tuple, Union

import pefile

from .errors import ResourceAccessError

Identifier = Union[int, str]
Resource = Tuple[int, Identifier, bytes]

BACKENDS = ("auto", "pefile", "win32")


class ResourceSource:
    """
    A loaded module that can list its resources of one type as
    (type, identifier, raw bytes) triples and report its backing file.
    Stopping the iteration early is allowed. Use as a context manager.
    """

    def iter_resources(self, kind: int) -> Iterator[Resource]:
        raise NotImplementedError

    def module_path(self) -> str:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


# ---- pefile ---------------------------------------------------

def _load_pe(path: str) -> pefile.PE:
    try:
        pe = pefile.PE(path, fast_load=True)
    except OSError as e:
        raise ResourceAccessError(f"{path}: {e.strerror or e}", e.errno) from e
    except pefile.PEFormatError as e:
        raise ResourceAccessError(f"{path}: not a PE image: {e}") from e
    try:
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]])
    except pefile.PEFormatError as e:
        pe.close()
        raise ResourceAccessError(f"{path}: bad resource directory: {e}") from e
    return pe


def _entry_name(entry) -> Identifier:
    if entry.id is not None:
        return entry.id
    name = entry.name
    if hasattr(name, "decode"):
        return name.decode("utf-8", "backslashreplace")
    return str(name)


class PEFileResourceSource(ResourceSource):
    """Reads resources straight out of the file with pefile; nothing is mapped or executed."""

    def __init__(self, path, pe: Optional[pefile.PE] = None):
        self.path = os.path.abspath(str(path))
        self.pe = pe if pe is not None else _load_pe(self.path)

    def iter_resources(self, kind: int) -> Iterator[Resource]:
        root = getattr(self.pe, "DIRECTORY_ENTRY_RESOURCE", None)
        if root is None:
            return
        for type_entry in root.entries:
            if type_entry.id != kind:
                continue
            for name_entry in type_entry.directory.entries:
                ident = _entry_name(name_entry)
                yield kind, ident, self._read(name_entry, ident)

    def _read(self, name_entry, ident: Identifier) -> bytes:
        # type -> name -> language; like FindResource we take the first language
        directory = getattr(name_entry, "directory", None)
        langs = directory.entries if directory is not None else []
        if not langs or getattr(langs[0], "data", None) is None:
            raise ResourceAccessError(f"{self.path}: resource {ident!r} has no data entry")
        rva, size = langs[0].data.struct.OffsetToData, langs[0].data.struct.Size
        if size == 0:
            raise ResourceAccessError(f"{self.path}: resource {ident!r} is empty")
        try:
            blob = self.pe.get_data(rva, size)
        except pefile.PEFormatError as e:
            raise ResourceAccessError(f"{self.path}: resource {ident!r} unreadable: {e}") from e
        if len(blob) < size:
            raise ResourceAccessError(
                f"{self.path}: resource {ident!r} truncated ({len(blob)}/{size} bytes)")
        return bytes(blob)

    def module_path(self) -> str:
        return self.path

    def close(self) -> None:
        if self.pe is not None:
            self.pe.close()
            self.pe = None


# ---- Win32 loader (ctypes) ------------------------------------

LOAD_LIBRARY_AS_DATAFILE = 0x00000002
ERROR_RESOURCE_DATA_NOT_FOUND = 1812
ERROR_RESOURCE_TYPE_NOT_FOUND = 1813
MAX_PATH = 260

_api = None


def _win32_api():
    global _api
    if _api is not None:
        return _api
    import ctypes
    from ctypes import wintypes as wt

    k32 = ctypes.WinDLL("kernel32", use_last_error=True)
    psapi = ctypes.WinDLL("psapi", use_last_error=True)
    enum_proc = ctypes.WINFUNCTYPE(wt.BOOL, wt.HMODULE, ctypes.c_void_p, ctypes.c_void_p, ctypes.c_void_p)

    k32.LoadLibraryExW.argtypes = [wt.LPCWSTR, wt.HANDLE, wt.DWORD]
    k32.LoadLibraryExW.restype = wt.HMODULE
    k32.FreeLibrary.argtypes = [wt.HMODULE]
    k32.FreeLibrary.restype = wt.BOOL
    k32.EnumResourceNamesW.argtypes = [wt.HMODULE, ctypes.c_void_p, enum_proc, ctypes.c_void_p]
    k32.EnumResourceNamesW.restype = wt.BOOL
    k32.FindResourceW.argtypes = [wt.HMODULE, ctypes.c_void_p, ctypes.c_void_p]
    k32.FindResourceW.restype = ctypes.c_void_p
    k32.LoadResource.argtypes = [wt.HMODULE, ctypes.c_void_p]
    k32.LoadResource.restype = ctypes.c_void_p
    k32.LockResource.argtypes = [ctypes.c_void_p]
    k32.LockResource.restype = ctypes.c_void_p
    k32.SizeofResource.argtypes = [wt.HMODULE, ctypes.c_void_p]
    k32.SizeofResource.restype = wt.DWORD
    k32.GetCurrentProcess.restype = wt.HANDLE
    psapi.GetMappedFileNameW.argtypes = [wt.HANDLE, ctypes.c_void_p, wt.LPWSTR, wt.DWORD]
    psapi.GetMappedFileNameW.restype = wt.DWORD

    _api = (ctypes, k32, psapi, enum_proc)
    return _api


class Win32ResourceSource(ResourceSource):
    """LoadLibraryEx(LOAD_LIBRARY_AS_DATAFILE) + EnumResourceNames/FindResource/LockResource."""

    def __init__(self, path):
        if sys.platform != "win32":
            raise ResourceAccessError("the win32 backend needs Windows; use backend='pefile'")
        self.path = str(path)
        self._ctypes, self._k32, self._psapi, self._enum_proc = _win32_api()
        self._module = self._k32.LoadLibraryExW(self.path, None, LOAD_LIBRARY_AS_DATAFILE)
        if not self._module:
            self._fail(f"LoadLibraryEx({self.path})")

    def _fail(self, what: str):
        raise ResourceAccessError(f"{what} failed", self._ctypes.get_last_error())

    def _names(self, kind: int) -> list:
        names = []

        # exceptions cannot cross the callback boundary; only record names here
        def visit(module, rtype, name, param):
            if name >> 16 == 0:
                names.append(name)
            else:
                names.append(self._ctypes.wstring_at(name))
            return True

        callback = self._enum_proc(visit)
        if not self._k32.EnumResourceNamesW(self._module, kind, callback, None):
            err = self._ctypes.get_last_error()
            if err not in (ERROR_RESOURCE_DATA_NOT_FOUND, ERROR_RESOURCE_TYPE_NOT_FOUND):
                raise ResourceAccessError(f"EnumResourceNames(type={kind})", err)
        return names

    def _data(self, kind: int, name: Identifier) -> bytes:
        info = self._k32.FindResourceW(self._module, name, kind)
        if not info:
            self._fail(f"FindResource({name!r})")
        handle = self._k32.LoadResource(self._module, info)
        if not handle:
            self._fail(f"LoadResource({name!r})")
        ptr = self._k32.LockResource(handle)
        if not ptr:
            self._fail(f"LockResource({name!r})")
        size = self._k32.SizeofResource(self._module, info)
        if size == 0:
            self._fail(f"SizeofResource({name!r})")
        return self._ctypes.string_at(ptr, size)

    def iter_resources(self, kind: int) -> Iterator[Resource]:
        for name in self._names(kind):
            yield kind, name, self._data(kind, name)

    def module_path(self) -> str:
        # device form, e.g. "\Device\HarddiskVolume2\Windows\System32\shell32.dll"
        buf = self._ctypes.create_unicode_buffer(MAX_PATH)
        n = self._psapi.GetMappedFileNameW(self._k32.GetCurrentProcess(), self._module, buf, MAX_PATH)
        if n == 0:
            self._fail("GetMappedFileName")
        return buf.value

    def close(self) -> None:
        if self._module:
            self._k32.FreeLibrary(self._module)
            self._module = None


def open_source(path, backend: str = "auto") -> ResourceSource:
    if backend == "auto":
        backend = "win32" if sys.platform == "win32" else "pefile"
    if backend == "pefile":
        return PEFileResourceSource(path)
    if backend == "win32":
        return Win32ResourceSource(path)
    raise ValueError(f"unknown backend {backend!r} (choose from {', '.join(BACKENDS)})")
