import unittest

from atmfjstc.lib.archive_records.ar import ArEntry, AR_GLOBAL_HEADER, AR_ENTRY_HEADER_SIZE
from atmfjstc.lib.archive_records.ar.header import ArLongNameMode, parse_ar_entry_header, format_ar_entry_header, \
    is_ar_archive
from atmfjstc.lib.archive_records.errors import ArchiveRecordMagicError, ArchiveNumericFieldError, \
    ArchiveRecordReadPastEndError, ArchiveRecordValidationError, ArchiveRecordDecodingError


SAMPLE_HEADER = b''.join([
    b'foo.o           ',
    b'1600000000  ',
    b'1000  ',
    b'100   ',
    b'100755  ',
    b'1234      ',
    b'`\n',
])


class FormatArEntryHeaderTest(unittest.TestCase):
    def test_basic(self):
        header = format_ar_entry_header(ArEntry('foo.o', 1234, 1000, 100, 0o100755, 1600000000))

        self.assertEqual(header, SAMPLE_HEADER)

    def test_long_name_error(self):
        with self.assertRaises(ArchiveRecordValidationError):
            format_ar_entry_header(ArEntry('seventeen_chars.o', 1, last_modified=0))

    def test_sixteen_chars_fit(self):
        header = format_ar_entry_header(ArEntry('sixteen_chars.oo', 1, last_modified=0))

        self.assertEqual(header[:16], b'sixteen_chars.oo')

    def test_bsd_long_name(self):
        data = format_ar_entry_header(
            ArEntry('a_really_long_object_name.o', 100, last_modified=0), long_names=ArLongNameMode.BSD
        )

        self.assertEqual(len(data), AR_ENTRY_HEADER_SIZE + 27)
        self.assertEqual(data[:16], b'#1/27           ')
        self.assertEqual(data[48:58], b'127       ')
        self.assertEqual(data[60:], b'a_really_long_object_name.o')

    def test_bsd_mode_short_name_unchanged(self):
        entry = ArEntry('foo.o', 1234, 1000, 100, 0o100755, 1600000000)

        self.assertEqual(format_ar_entry_header(entry, long_names=ArLongNameMode.BSD), SAMPLE_HEADER)

    def test_bsd_name_with_space(self):
        data = format_ar_entry_header(ArEntry('a b', 1, last_modified=0), long_names=ArLongNameMode.BSD)

        self.assertEqual(data[:16], b'#1/3            ')
        self.assertEqual(data[60:], b'a b')

    def test_names_not_storable_as_is(self):
        for name in ('a b', 'a b ', 'foo/', '#1/3', '/123', '/', '//', '/SYM64/'):
            with self.subTest(name=name), self.assertRaises(ArchiveRecordValidationError):
                format_ar_entry_header(ArEntry(name, 10, last_modified=0))

    def test_names_resembling_special_forms_are_fine(self):
        for name in ('#1/x', '/tmp.o', 'a/b', '#2/3'):
            with self.subTest(name=name):
                header = format_ar_entry_header(ArEntry(name, 10, last_modified=0))

                self.assertEqual(header[:16], name.encode('ascii').ljust(16))

    def test_negative_mtime(self):
        header = format_ar_entry_header(ArEntry('a', 1, last_modified=-5))

        self.assertEqual(header[16:28], b'-5          ')

    def test_field_overflow(self):
        with self.assertRaises(ArchiveRecordValidationError):
            format_ar_entry_header(ArEntry('a', 1, user_id=1000000, last_modified=0))
        with self.assertRaises(ArchiveRecordValidationError):
            format_ar_entry_header(ArEntry('a', 10000000000, last_modified=0))

    def test_no_name(self):
        with self.assertRaises(ArchiveRecordValidationError):
            format_ar_entry_header(ArEntry(None, 1))

    def test_non_ascii_name(self):
        with self.assertRaises(ArchiveRecordValidationError):
            format_ar_entry_header(ArEntry('ñ.o', 1))


class ParseArEntryHeaderTest(unittest.TestCase):
    def test_basic(self):
        header = parse_ar_entry_header(SAMPLE_HEADER)

        self.assertEqual(header.raw_name, 'foo.o')
        self.assertEqual(header.name, 'foo.o')
        self.assertEqual(header.last_modified, 1600000000)
        self.assertEqual(header.user_id, 1000)
        self.assertEqual(header.group_id, 100)
        self.assertEqual(header.mode, 0o100755)
        self.assertEqual(header.length, 1234)
        self.assertFalse(header.has_long_name)

    def test_at_offset(self):
        header = parse_ar_entry_header(AR_GLOBAL_HEADER + SAMPLE_HEADER, len(AR_GLOBAL_HEADER))

        self.assertEqual(header.raw_name, 'foo.o')
        self.assertEqual(header.length, 1234)

    def test_to_entry(self):
        entry = parse_ar_entry_header(SAMPLE_HEADER).to_entry()

        self.assertEqual(entry, ArEntry('foo.o', 0))
        self.assertEqual(entry.length, 1234)
        self.assertEqual(entry.user_id, 1000)
        self.assertEqual(entry.group_id, 100)
        self.assertEqual(entry.mode, 0o100755)
        self.assertEqual(entry.last_modified, 1600000000)

    def test_gnu_trailing_slash(self):
        header = parse_ar_entry_header(b'foo.o/          ' + SAMPLE_HEADER[16:])

        self.assertEqual(header.raw_name, 'foo.o/')
        self.assertEqual(header.name, 'foo.o')
        self.assertEqual(header.to_entry().name, 'foo.o')

    def test_gnu_long_name(self):
        header = parse_ar_entry_header(b'/123            ' + SAMPLE_HEADER[16:])

        self.assertTrue(header.has_long_name)
        self.assertEqual(header.gnu_long_name_offset, 123)
        self.assertIsNone(header.name)

        with self.assertRaises(ValueError):
            header.to_entry()

        self.assertEqual(header.to_entry('resolved_long_name.o').name, 'resolved_long_name.o')

    def test_gnu_special_entries(self):
        symbols = parse_ar_entry_header(b'/               ' + SAMPLE_HEADER[16:])
        names = parse_ar_entry_header(b'//              ' + SAMPLE_HEADER[16:])

        self.assertTrue(symbols.is_symbol_table)
        self.assertEqual(symbols.name, '/')
        self.assertTrue(names.is_gnu_name_table)
        self.assertEqual(names.name, '//')

    def test_blank_owner(self):
        header = parse_ar_entry_header(SAMPLE_HEADER[:28] + b' ' * 12 + SAMPLE_HEADER[40:])

        self.assertEqual(header.user_id, 0)
        self.assertEqual(header.group_id, 0)

    def test_bad_trailer(self):
        with self.assertRaises(ArchiveRecordMagicError) as cm:
            parse_ar_entry_header(SAMPLE_HEADER[:58] + b'\n`')

        self.assertEqual(cm.exception.position, 58)
        self.assertEqual(cm.exception.found_magic, b'\n`')

    def test_bad_number(self):
        with self.assertRaises(ArchiveNumericFieldError):
            parse_ar_entry_header(SAMPLE_HEADER[:48] + b'12x4      ' + SAMPLE_HEADER[58:])

    def test_bad_mode(self):
        with self.assertRaises(ArchiveNumericFieldError):
            parse_ar_entry_header(SAMPLE_HEADER[:40] + b'100899  ' + SAMPLE_HEADER[48:])

    def test_truncated(self):
        with self.assertRaises(ArchiveRecordReadPastEndError):
            parse_ar_entry_header(SAMPLE_HEADER[:59])

    def test_non_ascii_name(self):
        with self.assertRaises(ArchiveRecordDecodingError):
            parse_ar_entry_header(b'\xe9' + SAMPLE_HEADER[1:])


class ArEntryHeaderRoundTripTest(unittest.TestCase):
    def test_regular(self):
        entry = ArEntry('libbar.a', 9999999999, 999999, 999999, 0o77777777, 999999999999)
        parsed = parse_ar_entry_header(format_ar_entry_header(entry)).to_entry()

        self.assertEqual(parsed, entry)
        self.assertEqual(
            (parsed.length, parsed.user_id, parsed.group_id, parsed.mode, parsed.last_modified),
            (entry.length, entry.user_id, entry.group_id, entry.mode, entry.last_modified),
        )

    def test_bsd_long_name(self):
        entry = ArEntry('a_really_long_object_name.o', 100, 1, 2, 0o100600, 1500000000)
        data = format_ar_entry_header(entry, long_names=ArLongNameMode.BSD) + b'\x00' * 100

        header = parse_ar_entry_header(data)

        self.assertEqual(header.bsd_long_name_length, 27)
        self.assertIsNone(header.name)

        name = header.decode_bsd_long_name(data, AR_ENTRY_HEADER_SIZE)
        parsed = header.to_entry(name)

        self.assertEqual(parsed.name, 'a_really_long_object_name.o')
        self.assertEqual(parsed.length, 100)
        self.assertEqual(parsed.mode, 0o100600)

    def test_awkward_names_via_bsd(self):
        for name in ('a b ', ' lead', 'foo/', '#1/3', '/123', '/', '//', '/SYM64/'):
            with self.subTest(name=name):
                entry = ArEntry(name, 10, last_modified=0)
                data = format_ar_entry_header(entry, long_names=ArLongNameMode.BSD) + b'\x00' * 10

                header = parse_ar_entry_header(data)
                parsed = header.to_entry(header.decode_bsd_long_name(data, AR_ENTRY_HEADER_SIZE))

                self.assertEqual(parsed.name, name)
                self.assertEqual(parsed.length, 10)

    def test_negative_mtime(self):
        entry = ArEntry('old.o', 1, last_modified=-86400)

        self.assertEqual(parse_ar_entry_header(format_ar_entry_header(entry)).last_modified, -86400)

    def test_bsd_name_longer_than_entry(self):
        with self.assertRaises(ArchiveRecordDecodingError):
            parse_ar_entry_header(b'#1/50           ' + SAMPLE_HEADER[16:48] + b'10        `\n')


class IsArArchiveTest(unittest.TestCase):
    def test_true(self):
        self.assertTrue(is_ar_archive(AR_GLOBAL_HEADER + SAMPLE_HEADER))

    def test_false(self):
        self.assertFalse(is_ar_archive(b'PK\x03\x04'))
        self.assertFalse(is_ar_archive(b''))


if __name__ == '__main__':
    unittest.main()
