# iconextract/errors.py - failure kinds raised while extracting icons from a module

from __future__ import annotations
from typing import Optional


class IconExtractError(Exception):
    """Base class: the icons of this module could not be extracted."""


class ResourceAccessError(IconExtractError):
    """The resource source could not enumerate/locate/load/lock/size a resource."""

    def __init__(self, message: str, code: Optional[int] = None):
        self.code = code
        if code is not None:
            message = f"{message} (error {code})"
        super().__init__(message)


class MissingImageData(IconExtractError, LookupError):
    def __init__(self, image_id: int):
        self.image_id = image_id
        super().__init__(f"group entry references missing RT_ICON id {image_id}")


class DuplicateImageIdentifier(IconExtractError):
    def __init__(self, image_id: int):
        self.image_id = image_id
        super().__init__(f"RT_ICON id {image_id} enumerated twice")


class IndexOutOfRange(IconExtractError, IndexError):
    def __init__(self, index: int, count: int):
        self.index = index
        self.count = count
        super().__init__(f"icon index {index} out of range [0, {count})")


class MalformedGroupDirectory(IconExtractError, ValueError):
    """Header or entry geometry points past the end of the group buffer."""


class IconDecodeError(IconExtractError):
    def __init__(self, index: int, cause: BaseException):
        self.index = index
        self.cause = cause
        super().__init__(f"icon {index} could not be decoded: {cause}")
