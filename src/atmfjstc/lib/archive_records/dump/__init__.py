"""
Model and decoder for the volume summary of a Unix ``dump`` backup.

Every volume (historically, every tape) of a ``dump`` backup starts with a header record describing the backup it
belongs to: when it was taken, from which host, device and mountpoint, at what incremental level etc. The `DumpSummary`
class holds this information.

Note that only the "new" header and inode formats are supported. Volumes in the old formats are decoded just the
same, but the data will not make much sense. Callers that care should check `DumpSummary.is_new_header` and
`DumpSummary.is_new_inode`.
"""

import logging

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import IntFlag
from typing import Optional

from atmfjstc.lib.archive_records.codec import read_int32, decode_text, trim_padding
from atmfjstc.lib.archive_records.encoding import ArchiveTextEncoding, default_text_encoding


LOG = logging.getLogger(__name__)


DUMP_TP_SIZE = 1024
DUMP_NFS_MAGIC = 60012
DUMP_CHECKSUM = 84446
DUMP_LBLSIZE = 16
DUMP_NAMELEN = 64

DUMP_DATE_OFFSET = 4
DUMP_PREVIOUS_DATE_OFFSET = 8
DUMP_VOLUME_OFFSET = 12
DUMP_LABEL_OFFSET = 676
DUMP_LEVEL_OFFSET = DUMP_LABEL_OFFSET + DUMP_LBLSIZE
DUMP_FILESYSTEM_OFFSET = DUMP_LEVEL_OFFSET + 4
DUMP_DEVNAME_OFFSET = DUMP_FILESYSTEM_OFFSET + DUMP_NAMELEN
DUMP_HOSTNAME_OFFSET = DUMP_DEVNAME_OFFSET + DUMP_NAMELEN
DUMP_FLAGS_OFFSET = DUMP_HOSTNAME_OFFSET + DUMP_NAMELEN
DUMP_FIRST_RECORD_OFFSET = DUMP_FLAGS_OFFSET + 4
DUMP_NTREC_OFFSET = DUMP_FIRST_RECORD_OFFSET + 4
DUMP_SUMMARY_SIZE = DUMP_NTREC_OFFSET + 4


class DumpVolumeFlags(IntFlag):
    NEW_HEADER = 0x0001
    NEW_INODE = 0x0002
    COMPRESSED = 0x0080
    METADATA_ONLY = 0x0100
    EXTENDED_ATTRIBUTES = 0x8000


_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _millis_to_datetime(millis: int) -> datetime:
    return _EPOCH + timedelta(milliseconds=millis)


def _datetime_to_millis(value: datetime) -> int:
    # Naive datetimes are taken to be in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)

    return (value - _EPOCH) // timedelta(milliseconds=1)


@dataclass(eq=False)
class DumpSummary:
    """
    Identifying information about one volume of a ``dump`` backup.

    Objects of this class are plain mutable records. They are decoded once from the volume header, after which any
    field can be corrected by simple assignment (e.g. when a later volume of a multi-volume dump revises some of
    them). They are not safe for concurrent modification.

    Two summaries compare equal if they have the same device name, dump date and host name, i.e. if they describe
    volumes of the same dump. Since they are mutable, summaries are not hashable.

    Attributes:
        dump_date_millis: The date of this dump, in milliseconds since the UNIX epoch. See also `dump_date`.
        previous_dump_date_millis: The date of the previous dump at this level or higher, in milliseconds since the
            UNIX epoch. See also `previous_dump_date`.
        volume: The volume (tape) number.
        label: The dump label. This may be autogenerated, or specified by the user.
        level: The level of this dump, between 0 and 9 inclusive. A level 0 dump is a complete dump of the partition.
            A level ``n`` dump contains all the files that changed since the last dump at level ``n`` or lower.
        filesystem: The last mountpoint, e.g. ``/home``
        devname: The device name, e.g. ``/dev/sda3`` or ``/dev/mapper/vg0-home``
        hostname: The name of the host on which the dump was performed.
        flags: Miscellaneous flags (see `DumpVolumeFlags`). Prefer the ``is_...`` properties for querying them.
        first_record: The inode of the first record on this volume.
        ntrec: The number of records per tape block, typically between 10 and 32.
    """

    dump_date_millis: int = 0
    previous_dump_date_millis: int = 0
    volume: int = 0
    label: str = ''
    level: int = 0
    filesystem: str = ''
    devname: str = ''
    hostname: str = ''
    flags: int = 0
    first_record: int = 0
    ntrec: int = 0

    @staticmethod
    def decode(
        buffer: bytes, encoding: Optional[ArchiveTextEncoding] = None, big_endian: bool = True
    ) -> 'DumpSummary':
        return decode_dump_summary(buffer, encoding, big_endian=big_endian)

    @property
    def dump_date(self) -> datetime:
        return _millis_to_datetime(self.dump_date_millis)

    @dump_date.setter
    def dump_date(self, value: datetime):
        self.dump_date_millis = _datetime_to_millis(value)

    @property
    def previous_dump_date(self) -> datetime:
        return _millis_to_datetime(self.previous_dump_date_millis)

    @previous_dump_date.setter
    def previous_dump_date(self, value: datetime):
        self.previous_dump_date_millis = _datetime_to_millis(value)

    @property
    def is_new_header(self) -> bool:
        return self._has_flag(DumpVolumeFlags.NEW_HEADER)

    @property
    def is_new_inode(self) -> bool:
        return self._has_flag(DumpVolumeFlags.NEW_INODE)

    @property
    def is_compressed(self) -> bool:
        """
        Whether the volume is compressed. Individual blocks may or may not be compressed, but the first block is
        never compressed.
        """
        return self._has_flag(DumpVolumeFlags.COMPRESSED)

    @property
    def is_metadata_only(self) -> bool:
        return self._has_flag(DumpVolumeFlags.METADATA_ONLY)

    @property
    def is_extended_attributes(self) -> bool:
        """
        Whether the volume contains extended attributes.
        """
        return self._has_flag(DumpVolumeFlags.EXTENDED_ATTRIBUTES)

    def _has_flag(self, flag: DumpVolumeFlags) -> bool:
        return (self.flags & flag) == flag

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if other.__class__ != self.__class__:
            return NotImplemented

        return (self.devname, self.dump_date_millis, self.hostname) == \
            (other.devname, other.dump_date_millis, other.hostname)

    __hash__ = None


def decode_dump_summary(
    buffer: bytes, encoding: Optional[ArchiveTextEncoding] = None, big_endian: bool = True
) -> DumpSummary:
    """
    Decodes the volume summary from a ``dump`` volume header.

    Args:
        buffer: The header data. Must contain at least the first `DUMP_SUMMARY_SIZE` bytes of the header.
        encoding: The encoding for the text fields (label, mountpoint, device and host names). If None, the platform
            default encoding is used.
        big_endian: The byte order of the integer fields. Note that ``dump`` writes these in the byte order of the
            host that made the backup, so little-endian data is common.

    Returns:
        The decoded summary. Text fields have their padding trimmed; dates are converted to milliseconds.

    Raises:
        ArchiveRecordDecodingError: If any field fails to decode. No partial summary is ever returned.
    """

    if encoding is None:
        encoding = default_text_encoding()

    def _int(offset: int, meaning: str) -> int:
        return read_int32(buffer, offset, big_endian=big_endian, meaning=meaning)

    def _text(offset: int, length: int, meaning: str) -> str:
        return trim_padding(decode_text(encoding, buffer, offset, length, meaning))

    summary = DumpSummary(
        dump_date_millis=1000 * _int(DUMP_DATE_OFFSET, 'dump date'),
        previous_dump_date_millis=1000 * _int(DUMP_PREVIOUS_DATE_OFFSET, 'previous dump date'),
        volume=_int(DUMP_VOLUME_OFFSET, 'volume number'),
        label=_text(DUMP_LABEL_OFFSET, DUMP_LBLSIZE, 'dump label'),
        level=_int(DUMP_LEVEL_OFFSET, 'dump level'),
        filesystem=_text(DUMP_FILESYSTEM_OFFSET, DUMP_NAMELEN, 'filesystem'),
        devname=_text(DUMP_DEVNAME_OFFSET, DUMP_NAMELEN, 'device name'),
        hostname=_text(DUMP_HOSTNAME_OFFSET, DUMP_NAMELEN, 'host name'),
        flags=_int(DUMP_FLAGS_OFFSET, 'flags'),
        first_record=_int(DUMP_FIRST_RECORD_OFFSET, 'first record'),
        ntrec=_int(DUMP_NTREC_OFFSET, 'records per block'),
    )

    if not (summary.is_new_header and summary.is_new_inode):
        LOG.debug(
            "Dump volume %d of %s:%s uses the old header or inode format, which is not supported",
            summary.volume, summary.hostname, summary.devname
        )

    return summary
