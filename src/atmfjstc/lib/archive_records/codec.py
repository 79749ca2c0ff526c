"""
Low-level utilities for extracting numbers and text from fixed-offset fields in a header buffer.

All functions here work on a buffer that is already fully resident in memory and take explicit offsets, as the headers
of the formats we handle have all their fields at fixed positions. There is thus no notion of a "current position".

Two families of numeric encodings are covered:

- Binary integers (`read_int32`, `read_fixed_size_int`), as used by the ``dump`` format
- ASCII digit runs padded with spaces (`parse_decimal_field`, `parse_octal_field` and their ``format_`` counterparts),
  as used by the ``ar`` format
"""

from typing import Optional

from atmfjstc.lib.archive_records.encoding import ArchiveTextEncoding
from atmfjstc.lib.archive_records.errors import ArchiveRecordReadPastEndError, ArchiveTextDecodingError, \
    ArchiveNumericFieldError, ArchiveRecordValidationError


def read_amount(buffer: bytes, offset: int, n_bytes: int, meaning: Optional[str] = None) -> bytes:
    """
    Extracts exactly `n_bytes` from the buffer, starting at `offset`.

    Args:
        buffer: The data to read from.
        offset: The position of the first byte.
        n_bytes: The amount of bytes to read.
        meaning: An indication as to the meaning of the data being read (e.g. "user ID"). It is used in the text of
            any exceptions that may be thrown.

    Returns:
        The data, as a `bytes` object `n_bytes` in length.

    Raises:
        ArchiveRecordReadPastEndError: If the buffer ends before we got the full `n_bytes`.
    """

    if offset < 0:
        raise ValueError("Offset cannot be negative")
    if n_bytes < 0:
        raise ValueError("The number of bytes to read cannot be negative")

    data = bytes(buffer[offset:offset + n_bytes])

    if len(data) < n_bytes:
        raise ArchiveRecordReadPastEndError(offset, n_bytes, len(data), meaning)

    return data


def read_fixed_size_int(
    buffer: bytes, offset: int, n_bytes: int, signed: bool = False, big_endian: bool = True,
    meaning: Optional[str] = None
) -> int:
    """
    Reads an integer stored in a given number of bytes at a given offset.

    Args:
        buffer: The data to read from.
        offset: The position of the first byte of the integer.
        n_bytes: The number of bytes the int is stored over (e.g. a 32 bit int has 4 bytes). Must be at least 1.
        signed: Whether to interpret the integer as signed (two's complement).
        big_endian: The byte order. Big-endian by default.
        meaning: An indication as to the meaning of the data being read, used in the text of exceptions.

    Returns:
        The parsed integer.

    Raises:
        ArchiveRecordReadPastEndError: If the buffer ends before the integer does.
    """

    if n_bytes < 1:
        raise ValueError("Number of bytes in int must be at least 1")

    return int.from_bytes(
        read_amount(buffer, offset, n_bytes, meaning or 'int'),
        byteorder='big' if big_endian else 'little',
        signed=signed
    )


def read_int32(buffer: bytes, offset: int, big_endian: bool = True, meaning: Optional[str] = None) -> int:
    """
    Reads the 4 bytes at `offset` as a signed 32-bit integer (big-endian unless specified otherwise).
    """
    return read_fixed_size_int(buffer, offset, 4, signed=True, big_endian=big_endian, meaning=meaning)


def decode_text(
    encoding: ArchiveTextEncoding, buffer: bytes, offset: int, length: int, meaning: Optional[str] = None
) -> str:
    """
    Decodes `length` bytes starting at `offset` into text, using the supplied encoding.

    Note that any padding (NULs, spaces) is preserved. Use `trim_padding` to get rid of it.

    Raises:
        ArchiveTextDecodingError: If the bytes are not valid in the given encoding.
        ArchiveRecordReadPastEndError: If the buffer ends before the field does.
    """

    raw_value = read_amount(buffer, offset, length, meaning)

    try:
        return encoding.decode(raw_value)
    except ValueError as e:
        raise ArchiveTextDecodingError(offset, raw_value, encoding.name, meaning) from e


def trim_padding(text: str) -> str:
    """
    Removes padding from both ends of a fixed-width text field.

    Any character with a code of 0x20 or less counts as padding, which covers spaces, NULs and stray control
    characters alike.
    """
    return text.strip(_PADDING_CHARS)


_PADDING_CHARS = ''.join(chr(code) for code in range(0x21))


def parse_decimal_field(
    buffer: bytes, offset: int, width: int, meaning: Optional[str] = None, blank_as_zero: bool = False,
    signed: bool = False
) -> int:
    """
    Parses a fixed-width field containing a decimal number written in ASCII and padded with spaces.

    Args:
        buffer: The data to read from.
        offset: The position of the field.
        width: The width of the field, in bytes.
        meaning: An indication as to the meaning of the field, used in the text of exceptions.
        blank_as_zero: If True, a field consisting entirely of padding is read as 0. Otherwise, it is an error.
        signed: If True, the digits may be preceded by a ``-`` sign.

    Returns:
        The parsed number.

    Raises:
        ArchiveNumericFieldError: If the field contains anything other than digits and padding.
        ArchiveRecordReadPastEndError: If the buffer ends before the field does.
    """
    return _parse_ascii_number_field(buffer, offset, width, 10, meaning, blank_as_zero, signed)


def parse_octal_field(
    buffer: bytes, offset: int, width: int, meaning: Optional[str] = None, blank_as_zero: bool = False
) -> int:
    """
    Like `parse_decimal_field`, but for octal numbers (e.g. file modes).
    """
    return _parse_ascii_number_field(buffer, offset, width, 8, meaning, blank_as_zero, False)


def _parse_ascii_number_field(
    buffer: bytes, offset: int, width: int, base: int, meaning: Optional[str], blank_as_zero: bool, signed: bool
) -> int:
    raw_value = read_amount(buffer, offset, width, meaning)
    digits = raw_value.strip(b' \x00')

    if len(digits) == 0:
        if blank_as_zero:
            return 0

        raise ArchiveNumericFieldError(offset, raw_value, base, meaning)

    sign = 1
    if signed and digits.startswith(b'-'):
        sign = -1
        digits = digits[1:]

    allowed_digits = _DIGITS_BY_BASE[base]
    if (len(digits) == 0) or any(byte not in allowed_digits for byte in digits):
        raise ArchiveNumericFieldError(offset, raw_value, base, meaning)

    return sign * int(digits, base)


_DIGITS_BY_BASE = {
    8: frozenset(b'01234567'),
    10: frozenset(b'0123456789'),
}


def format_decimal_field(value: int, width: int, meaning: Optional[str] = None, signed: bool = False) -> bytes:
    """
    Renders a number as a fixed-width, left-aligned, space-padded decimal ASCII field.

    Negative numbers are only accepted if `signed` is True, in which case the ``-`` sign counts towards the width.

    Raises:
        ArchiveRecordValidationError: If the value is negative (and not `signed`) or does not fit in `width` chars.
    """
    return _format_ascii_number_field(value, width, 10, meaning, signed)


def format_octal_field(value: int, width: int, meaning: Optional[str] = None) -> bytes:
    """
    Like `format_decimal_field`, but renders the number in octal. Negative values are never accepted.
    """
    return _format_ascii_number_field(value, width, 8, meaning, False)


def _format_ascii_number_field(value: int, width: int, base: int, meaning: Optional[str], signed: bool) -> bytes:
    if (value < 0) and not signed:
        raise ArchiveRecordValidationError(f"Cannot store negative value {value} for {meaning or 'numeric field'}")

    digits = (f"{value:o}" if base == 8 else f"{value:d}").encode('ascii')

    if len(digits) > width:
        raise ArchiveRecordValidationError(
            f"Value {value} for {meaning or 'numeric field'} does not fit in {width} "
            f"{'octal' if base == 8 else 'decimal'} digits"
        )

    return digits.ljust(width, b' ')
