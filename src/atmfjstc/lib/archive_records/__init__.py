"""
Models and decoders for the fixed-layout metadata records embedded in ``ar`` and ``dump`` archives.

This is not a full archive reader. It covers only the structured header records of the two formats:

- `ar.ArEntry`, an immutable description of one member of an ``ar`` archive (static libraries, ``.deb`` packages), and
  `ar.header`, which converts it to and from the 60-byte ASCII entry header
- `dump.DumpSummary`, the volume summary found at the start of every volume of a Unix ``dump`` backup

Opening archives, iterating over entries, copying payloads etc. is left to the caller. The utilities here consume
bytes that have already been read and produce validated records, or raise an `errors.ArchiveRecordDecodingError`.

Text stored in the archives is decoded through a pluggable `encoding.ArchiveTextEncoding`, so that legacy codepages can
be substituted without touching the decoders.
"""


__version__ = '0.3.0'
