"""
The text decoding capability used by the record decoders.

Archives store names, labels, hostnames etc. as raw byte strings whose character set is not recorded anywhere. The
decoders thus take an `ArchiveTextEncoding` object that decides how bytes map to characters, e.g. "whatever the
platform default is" or "CP437, because this tape came from an old DOS box".
"""

import codecs
import locale
import logging

from abc import ABCMeta, abstractmethod
from typing import Optional


LOG = logging.getLogger(__name__)


class ArchiveTextEncoding(metaclass=ABCMeta):
    """
    Abstract interface for decoding archive-stored byte strings into text.

    Implementations must raise a `UnicodeDecodeError` (or some other `ValueError`) if the bytes are not valid in the
    encoding. They should never return corrupted text silently, unless they were explicitly configured to do so.
    """

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def decode(self, data: bytes) -> str:
        raise NotImplementedError


class PythonCodecEncoding(ArchiveTextEncoding):
    """
    An `ArchiveTextEncoding` backed by one of Python's codecs.

    The `errors` parameter has the same meaning as for `bytes.decode`. It is ``'strict'`` by default, which makes
    invalid data fail loudly.
    """

    _codec_name: str
    _errors: str

    def __init__(self, codec_name: str, errors: str = 'strict'):
        self._codec_name = codecs.lookup(codec_name).name
        self._errors = errors

    @property
    def name(self) -> str:
        return self._codec_name

    @property
    def errors(self) -> str:
        return self._errors

    def decode(self, data: bytes) -> str:
        return data.decode(self._codec_name, self._errors)

    def __eq__(self, other) -> bool:
        if not isinstance(other, PythonCodecEncoding):
            return NotImplemented

        return (self._codec_name, self._errors) == (other._codec_name, other._errors)

    def __hash__(self) -> int:
        return hash((self._codec_name, self._errors))

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self._codec_name!r}, errors={self._errors!r})"


ASCII_ENCODING = PythonCodecEncoding('ascii')
UTF8_ENCODING = PythonCodecEncoding('utf-8')


def get_text_encoding(name: Optional[str] = None, errors: str = 'strict') -> ArchiveTextEncoding:
    """
    Obtains an `ArchiveTextEncoding` for a given encoding name.

    Args:
        name: The name of a Python codec (``'utf-8'``, ``'cp437'``, ``'latin-1'`` etc). If None, the platform default
            encoding is used.
        errors: The error handling scheme, as for `bytes.decode`.

    Returns:
        The encoding object.

    Raises:
        ValueError: If there is no codec with the given name.
    """

    if name is None:
        name = locale.getpreferredencoding(False) or 'utf-8'
        LOG.debug("Platform default encoding resolved to %s", name)

    try:
        return PythonCodecEncoding(name, errors=errors)
    except LookupError as e:
        raise ValueError(f"Unknown text encoding: '{name}'") from e


def default_text_encoding() -> ArchiveTextEncoding:
    return get_text_encoding(None)
