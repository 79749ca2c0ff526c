from typing import Optional


class ArchiveRecordError(Exception):
    """
    Base class for all exceptions raised when building or decoding archive records.
    """


class ArchiveRecordValidationError(ArchiveRecordError, ValueError):
    """
    Raised when a record is constructed or formatted with values the format cannot represent (e.g. a negative length,
    or a number too wide for its column).
    """


class ArchiveRecordDecodingError(ArchiveRecordError):
    """
    Base class for situations where the raw data does not match the expected format.

    A decoding error always aborts the decoding of the entire enclosing record.
    """


class ArchiveRecordReadPastEndError(ArchiveRecordDecodingError):
    position: int
    expected_length: int
    actual_length: int
    meaning: Optional[str]

    def __init__(self, position: int, expected_length: int, actual_length: int, meaning: Optional[str]):
        self.position = position
        self.expected_length = expected_length
        self.actual_length = actual_length
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {expected_length} "
            f"bytes{f' for {meaning}' if meaning is not None else ''}"
            f", but only {actual_length} were found"
        )


class ArchiveTextDecodingError(ArchiveRecordDecodingError):
    position: int
    raw_value: bytes
    encoding_name: str
    meaning: Optional[str]

    def __init__(self, position: int, raw_value: bytes, encoding_name: str, meaning: Optional[str]):
        self.position = position
        self.raw_value = raw_value
        self.encoding_name = encoding_name
        self.meaning = meaning

        super().__init__(
            f"At position {position}, {meaning or 'text field'} (0x{raw_value.hex()}) is not valid in encoding "
            f"'{encoding_name}'"
        )


class ArchiveNumericFieldError(ArchiveRecordDecodingError):
    position: int
    raw_value: bytes
    base: int
    meaning: Optional[str]

    def __init__(self, position: int, raw_value: bytes, base: int, meaning: Optional[str]):
        self.position = position
        self.raw_value = raw_value
        self.base = base
        self.meaning = meaning

        base_name = {8: 'octal', 10: 'decimal'}.get(base, f"base-{base}")

        super().__init__(
            f"At position {position}, expected a {base_name} number{f' for {meaning}' if meaning is not None else ''}"
            f", but found {raw_value!r}"
        )


class ArchiveRecordMagicError(ArchiveRecordDecodingError):
    position: int
    expected_magic: bytes
    found_magic: bytes
    meaning: Optional[str]

    def __init__(self, position: int, expected_magic: bytes, found_magic: bytes, meaning: Optional[str]):
        self.position = position
        self.expected_magic = expected_magic
        self.found_magic = found_magic
        self.meaning = meaning

        super().__init__(
            f"At position {position}, expected {meaning or 'magic'} 0x{expected_magic.hex()}, but found "
            f"0x{found_magic.hex()}"
        )
