"""
Conversion between `ArEntry` objects and the 60-byte entry headers of an ``ar`` archive.
"""

import re

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from atmfjstc.lib.archive_records.ar import ArEntry, AR_GLOBAL_HEADER, AR_ENTRY_TRAILER, AR_ENTRY_HEADER_SIZE, \
    AR_NAME_OFFSET, AR_NAME_LEN, AR_LAST_MODIFIED_OFFSET, AR_LAST_MODIFIED_LEN, AR_USER_ID_OFFSET, AR_USER_ID_LEN, \
    AR_GROUP_ID_OFFSET, AR_GROUP_ID_LEN, AR_MODE_OFFSET, AR_MODE_LEN, AR_LENGTH_OFFSET, AR_LENGTH_LEN, \
    AR_TRAILER_OFFSET
from atmfjstc.lib.archive_records.codec import read_amount, decode_text, parse_decimal_field, parse_octal_field, \
    format_decimal_field, format_octal_field
from atmfjstc.lib.archive_records.encoding import ArchiveTextEncoding, ASCII_ENCODING
from atmfjstc.lib.archive_records.errors import ArchiveRecordDecodingError, ArchiveRecordMagicError, \
    ArchiveRecordValidationError


BSD_LONG_NAME_PREFIX = '#1/'
GNU_NAME_TABLE_NAME = '//'
GNU_SYMBOL_TABLE_NAMES = ('/', '/SYM64/')


class ArLongNameMode(Enum):
    """
    What to do when writing an entry whose name does not fit in the 16 bytes of the header.
    """
    ERROR = 'error'
    BSD = 'bsd'


@dataclass(frozen=True)
class ArEntryHeader:
    """
    The content of an ``ar`` entry header, exactly as stored.

    This differs from an `ArEntry` in that the name may be one of the special forms used by the GNU and BSD variants
    (e.g. ``#1/20`` or ``/123``), and for BSD long names the length also covers the name, which is stored at the start
    of the entry data. Use `to_entry` to get the actual entry.

    Attributes:
        raw_name: The name field, with the space padding removed
        last_modified: The modification time, in seconds since the UNIX epoch
        user_id: The numeric owner ID
        group_id: The numeric group ID
        mode: The UNIX file mode
        length: The length of the data following the header
    """

    raw_name: str
    last_modified: int
    user_id: int
    group_id: int
    mode: int
    length: int

    @property
    def bsd_long_name_length(self) -> Optional[int]:
        """
        For BSD-style long names (``#1/<length>``), the length of the name stored at the start of the data.
        """
        m = _BSD_LONG_NAME_REGEX.fullmatch(self.raw_name)

        return int(m.group(1)) if m is not None else None

    @property
    def gnu_long_name_offset(self) -> Optional[int]:
        """
        For GNU-style long names (``/<offset>``), the offset of the real name in the archive's name table.
        """
        m = _GNU_LONG_NAME_REGEX.fullmatch(self.raw_name)

        return int(m.group(1)) if m is not None else None

    @property
    def is_gnu_name_table(self) -> bool:
        return self.raw_name == GNU_NAME_TABLE_NAME

    @property
    def is_symbol_table(self) -> bool:
        return self.raw_name in GNU_SYMBOL_TABLE_NAMES

    @property
    def has_long_name(self) -> bool:
        return (self.bsd_long_name_length is not None) or (self.gnu_long_name_offset is not None)

    @property
    def name(self) -> Optional[str]:
        """
        The entry name, if it can be determined from the header alone (None for long names).

        The trailing ``/`` added by the SVR4/GNU variant is removed.
        """
        if self.has_long_name:
            return None
        if self.is_gnu_name_table or self.is_symbol_table:
            return self.raw_name

        return self.raw_name[:-1] if self.raw_name.endswith('/') else self.raw_name

    def decode_bsd_long_name(
        self, buffer: bytes, offset: int = 0, encoding: ArchiveTextEncoding = ASCII_ENCODING
    ) -> str:
        """
        Decodes the BSD long name stored at the start of the entry data.

        Args:
            buffer: A buffer containing the entry data.
            offset: The position at which the entry data starts in the buffer.
            encoding: The encoding of the name.

        Returns:
            The name, with any NUL padding removed.
        """
        name_length = self.bsd_long_name_length
        if name_length is None:
            raise ValueError(f"Entry '{self.raw_name}' does not have a BSD long name")

        return decode_text(encoding, buffer, offset, name_length, 'BSD long name').rstrip('\x00')

    def to_entry(self, name: Optional[str] = None) -> ArEntry:
        """
        Converts the header to an `ArEntry`.

        Args:
            name: The real name of the entry. This is required for long names, which the header does not contain
                (use `decode_bsd_long_name` for BSD names, or the archive's name table for GNU names). If given for a
                regular entry, it overrides the name in the header.

        Returns:
            The entry. For BSD long names, the length excludes the embedded name.
        """
        if name is None:
            name = self.name

            if name is None:
                raise ValueError(f"The real name must be supplied for entry '{self.raw_name}'")

        bsd_name_length = self.bsd_long_name_length

        return ArEntry(
            name=name,
            length=self.length - (bsd_name_length or 0),
            user_id=self.user_id,
            group_id=self.group_id,
            mode=self.mode,
            last_modified=self.last_modified,
        )


_BSD_LONG_NAME_REGEX = re.compile(re.escape(BSD_LONG_NAME_PREFIX) + r'(\d+)')
_GNU_LONG_NAME_REGEX = re.compile(r'/(\d+)')


def is_ar_archive(buffer: bytes) -> bool:
    """
    Checks whether the data starts with the global header of an ``ar`` archive.
    """
    return bytes(buffer[:len(AR_GLOBAL_HEADER)]) == AR_GLOBAL_HEADER


def parse_ar_entry_header(
    buffer: bytes, offset: int = 0, encoding: ArchiveTextEncoding = ASCII_ENCODING
) -> ArEntryHeader:
    """
    Parses a 60-byte ``ar`` entry header.

    Args:
        buffer: The data containing the header.
        offset: The position of the header in the buffer.
        encoding: The encoding for the name field. The format specifies plain ASCII.

    Returns:
        The header content, as an `ArEntryHeader`.

    Raises:
        ArchiveRecordMagicError: If the header does not end in the entry trailer magic.
        ArchiveNumericFieldError: If a numeric field is malformed.
        ArchiveTextDecodingError: If the name is not valid in the encoding.
        ArchiveRecordReadPastEndError: If the buffer is too short.
    """

    read_amount(buffer, offset, AR_ENTRY_HEADER_SIZE, 'ar entry header')

    trailer = read_amount(buffer, offset + AR_TRAILER_OFFSET, len(AR_ENTRY_TRAILER))
    if trailer != AR_ENTRY_TRAILER:
        raise ArchiveRecordMagicError(offset + AR_TRAILER_OFFSET, AR_ENTRY_TRAILER, trailer, 'ar entry trailer')

    header = ArEntryHeader(
        raw_name=decode_text(encoding, buffer, offset + AR_NAME_OFFSET, AR_NAME_LEN, 'entry name').rstrip(' '),
        last_modified=parse_decimal_field(
            buffer, offset + AR_LAST_MODIFIED_OFFSET, AR_LAST_MODIFIED_LEN, 'last modified time', signed=True
        ),
        # Some tools leave the owner and group blank
        user_id=parse_decimal_field(
            buffer, offset + AR_USER_ID_OFFSET, AR_USER_ID_LEN, 'user ID', blank_as_zero=True
        ),
        group_id=parse_decimal_field(
            buffer, offset + AR_GROUP_ID_OFFSET, AR_GROUP_ID_LEN, 'group ID', blank_as_zero=True
        ),
        mode=parse_octal_field(buffer, offset + AR_MODE_OFFSET, AR_MODE_LEN, 'file mode'),
        length=parse_decimal_field(buffer, offset + AR_LENGTH_OFFSET, AR_LENGTH_LEN, 'entry length'),
    )

    bsd_name_length = header.bsd_long_name_length
    if (bsd_name_length is not None) and (bsd_name_length > header.length):
        raise ArchiveRecordDecodingError(
            f"At position {offset}, BSD long name length ({bsd_name_length}) exceeds the entry length "
            f"({header.length})"
        )

    return header


def format_ar_entry_header(entry: ArEntry, long_names: ArLongNameMode = ArLongNameMode.ERROR) -> bytes:
    """
    Renders the ``ar`` entry header for an entry.

    Args:
        entry: The entry to render.
        long_names: How to handle names that cannot be stored as-is in the 16-byte name field. These are names that
            are too long, that contain spaces (which would be lost to the padding), that end in ``/`` (which readers
            strip), or that look like one of the special names (``#1/<n>``, ``/<n>``, ``//``, ``/SYM64/``). In
            ``BSD`` mode, such names are written after the header, which is included in the returned data. The entry
            data should follow immediately.

    Returns:
        The header, 60 bytes long, plus the BSD long name if one was needed.

    Raises:
        ArchiveRecordValidationError: If any of the fields cannot be represented.
    """

    if entry.name is None:
        raise ArchiveRecordValidationError("Cannot write an entry with no name")

    try:
        name_bytes = entry.name.encode('ascii')
    except UnicodeEncodeError as e:
        raise ArchiveRecordValidationError(f"Entry name '{entry.name}' contains non-ASCII characters") from e

    appended_name = b''

    too_long = len(name_bytes) > AR_NAME_LEN

    if too_long or not _is_plain_short_name(entry.name):
        if long_names != ArLongNameMode.BSD:
            raise ArchiveRecordValidationError(
                f"Entry name is too long, > {AR_NAME_LEN} chars: '{entry.name}'" if too_long else
                f"Entry name '{entry.name}' cannot be stored in the name field as-is"
            )

        appended_name = name_bytes
        name_bytes = f"{BSD_LONG_NAME_PREFIX}{len(appended_name)}".encode('ascii')

    header = b''.join([
        name_bytes.ljust(AR_NAME_LEN, b' '),
        format_decimal_field(entry.last_modified, AR_LAST_MODIFIED_LEN, 'last modified time', signed=True),
        format_decimal_field(entry.user_id, AR_USER_ID_LEN, 'user ID'),
        format_decimal_field(entry.group_id, AR_GROUP_ID_LEN, 'group ID'),
        format_octal_field(entry.mode, AR_MODE_LEN, 'file mode'),
        format_decimal_field(entry.length + len(appended_name), AR_LENGTH_LEN, 'entry length'),
        AR_ENTRY_TRAILER,
    ])

    assert len(header) == AR_ENTRY_HEADER_SIZE

    return header + appended_name


def _is_plain_short_name(name: str) -> bool:
    # Must read back unchanged through parse_ar_entry_header + ArEntryHeader.name
    if (' ' in name) or name.endswith('/'):
        return False

    return not (_BSD_LONG_NAME_REGEX.fullmatch(name) or _GNU_LONG_NAME_REGEX.fullmatch(name))
