"""
Sanity checks for the 1024-byte segment headers of a ``dump`` volume.

Each segment header carries a magic number and a checksum chosen such that all the 32-bit words in the header add up
to a fixed value. Checking these is the usual way of telling whether a buffer really holds a dump header before
decoding anything from it.
"""

from atmfjstc.lib.archive_records.codec import read_int32, read_amount
from atmfjstc.lib.archive_records.dump import DUMP_TP_SIZE, DUMP_NFS_MAGIC, DUMP_CHECKSUM


DUMP_INODE_OFFSET = 20
DUMP_MAGIC_OFFSET = 24
DUMP_CHECKSUM_OFFSET = 28


def calculate_dump_header_checksum(buffer: bytes, big_endian: bool = True) -> int:
    """
    Computes the checksum value a dump segment header should store, given the rest of its content.

    Args:
        buffer: The header data. Must be at least `DUMP_TP_SIZE` bytes long.
        big_endian: The byte order of the header.

    Returns:
        The expected checksum, as a signed 32-bit integer.
    """

    read_amount(buffer, 0, DUMP_TP_SIZE, 'dump segment header')

    total = sum(read_int32(buffer, offset, big_endian=big_endian) for offset in range(0, DUMP_TP_SIZE, 4))
    stored_checksum = read_int32(buffer, DUMP_CHECKSUM_OFFSET, big_endian=big_endian)

    return _wrap_int32(DUMP_CHECKSUM - (total - stored_checksum))


def verify_dump_header(buffer: bytes, big_endian: bool = True) -> bool:
    """
    Checks whether a buffer contains a valid dump segment header (correct magic and checksum).

    Only the "new" filesystem magic is accepted.
    """

    if len(buffer) < DUMP_TP_SIZE:
        return False

    if read_int32(buffer, DUMP_MAGIC_OFFSET, big_endian=big_endian) != DUMP_NFS_MAGIC:
        return False

    stored_checksum = read_int32(buffer, DUMP_CHECKSUM_OFFSET, big_endian=big_endian)

    return stored_checksum == calculate_dump_header_checksum(buffer, big_endian=big_endian)


def get_dump_header_inode(buffer: bytes, big_endian: bool = True) -> int:
    return read_int32(buffer, DUMP_INODE_OFFSET, big_endian=big_endian, meaning='inode number')


def _wrap_int32(value: int) -> int:
    value &= 0xffffffff

    return value - (1 << 32) if value & 0x80000000 else value
