"""
Model for the members of an ``ar`` archive (the format used for static libraries and Debian packages).

Each ``ar`` archive starts with the 8-byte global header ``!<arch>\\n``, after which the entries follow. Every entry
starts with a 60-byte header laid out like so::

    START  END  FIELD                   FORMAT   LENGTH
    0      15   File name               ASCII    16
    16     27   Modification timestamp  Decimal  12
    28     33   Owner ID                Decimal  6
    34     39   Group ID                Decimal  6
    40     47   File mode               Octal    8
    48     57   File size (bytes)       Decimal  10
    58     59   File magic              \\140\\012 2

Due to the limitation of the file name to 16 bytes, GNU and BSD each have their own variant of the format for longer
names. The `header` submodule can write the BSD variant; the GNU variant can only be recognized, as resolving it needs
the archive-wide name table.
"""

import os
import stat
import time

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import AnyStr, BinaryIO, Optional, Union
from os import PathLike

from atmfjstc.lib.archive_records.errors import ArchiveRecordValidationError


AR_GLOBAL_HEADER = b'!<arch>\n'
AR_ENTRY_TRAILER = b'`\n'
AR_ENTRY_HEADER_SIZE = 60

AR_NAME_OFFSET = 0
AR_NAME_LEN = 16
AR_LAST_MODIFIED_OFFSET = 16
AR_LAST_MODIFIED_LEN = 12
AR_USER_ID_OFFSET = 28
AR_USER_ID_LEN = 6
AR_GROUP_ID_OFFSET = 34
AR_GROUP_ID_LEN = 6
AR_MODE_OFFSET = 40
AR_MODE_LEN = 8
AR_LENGTH_OFFSET = 48
AR_LENGTH_LEN = 10
AR_TRAILER_OFFSET = 58

AR_DEFAULT_MODE = 0o100644


PathType = Union[PathLike, AnyStr]


def _current_unix_time() -> int:
    return int(time.time())


@dataclass(frozen=True, eq=False)
class ArEntry:
    """
    An immutable description of one member of an ``ar`` archive.

    Entries are identified by name alone: two entries with the same name compare (and hash) equal regardless of their
    other attributes, as names are unique within an archive. A None name is equal only to another None name.

    Constructing an entry with just a name and length fills in the usual defaults (owner and group 0, mode 0100644,
    modification time set to now)::

        entry = ArEntry('libfoo.o', 1024)

    Attributes:
        name: The name of the entry. It is not checked against the 16-byte limit of the format here; that only
            matters once the entry is written out as a header.
        length: The size of the entry's data, in bytes. Must not be negative.
        user_id: The numeric ID of the owner.
        group_id: The numeric ID of the owning group.
        mode: The UNIX file mode (type and permission bits).
        last_modified: The modification time, in seconds since the UNIX epoch. May be negative for pre-1970 dates.
    """

    name: Optional[str]
    length: int
    user_id: int = 0
    group_id: int = 0
    mode: int = AR_DEFAULT_MODE
    last_modified: int = field(default_factory=_current_unix_time)

    def __post_init__(self):
        if self.length < 0:
            raise ArchiveRecordValidationError(f"Entry length must not be negative (is: {self.length})")

    @staticmethod
    def from_name_and_length(name: Optional[str], length: int) -> 'ArEntry':
        return ArEntry(name, length)

    @staticmethod
    def from_file(
        path_or_fileobj: Union[PathType, BinaryIO], entry_name: Optional[str], follow_symlinks: bool = True
    ) -> 'ArEntry':
        """
        Creates an entry describing a file on disk.

        Only the size and modification time are taken from the file. The owner and group are always set to 0 and the
        mode to 0100644, as the ``ar`` format is mostly used for build artifacts where these are irrelevant.

        Args:
            path_or_fileobj: Either a path, or an open file object backed by an actual file.
            entry_name: The name the entry should have in the archive.
            follow_symlinks: Whether to describe the target of a symlink rather than the link itself. Ignored when a
                file object is passed.

        Returns:
            The entry. Its length is 0 if the path does not point to a regular file (directories, devices etc.)

        Raises:
            OSError: If the file metadata could not be read.
        """

        if isinstance(path_or_fileobj, (str, bytes, PathLike)):
            stat_result = os.stat(path_or_fileobj, follow_symlinks=follow_symlinks)
        else:
            # Any object with a real descriptor will do, including wrappers like NamedTemporaryFile
            stat_result = os.fstat(path_or_fileobj.fileno())

        return ArEntry(
            name=entry_name,
            length=stat_result.st_size if stat.S_ISREG(stat_result.st_mode) else 0,
            user_id=0,
            group_id=0,
            mode=AR_DEFAULT_MODE,
            last_modified=stat_result.st_mtime_ns // 1000000000,
        )

    @property
    def size(self) -> int:
        return self.length

    @property
    def last_modified_date(self) -> datetime:
        return datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=self.last_modified)

    @property
    def is_directory(self) -> bool:
        # The format has no concept of directories
        return False

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if other.__class__ != self.__class__:
            return NotImplemented

        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)
