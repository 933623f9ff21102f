# SPDX-License-Identifier: MIT

import unittest

import msvcanalyzer.wincmd as sut


class EscapeTest(unittest.TestCase):
    def test_plain_argument_quoted(self):
        self.assertEqual('"/DFOO=1"', sut.escape("/DFOO=1"))
        self.assertEqual('"/IC:\\inc"', sut.escape("/IC:\\inc"))
        self.assertEqual('""', sut.escape(""))

    def test_space_kept_inside_quotes(self):
        self.assertEqual('"/IC:\\Program Files\\inc"', sut.escape("/IC:\\Program Files\\inc"))

    def test_trailing_backslashes_doubled(self):
        self.assertEqual('"C:\\foo\\\\"', sut.escape("C:\\foo\\"))
        self.assertEqual('"C:\\foo\\\\\\\\"', sut.escape("C:\\foo\\\\"))
        self.assertEqual('"\\\\"', sut.escape("\\"))

    def test_inner_backslashes_untouched(self):
        self.assertEqual('"a\\\\b"', sut.escape("a\\\\b"))

    def test_closing_quote_not_escaped(self):
        for arg in ["x", "x\\", "x\\\\", "x\\\\\\", "\\\\\\\\"]:
            with self.subTest(arg=arg):
                quoted = sut.escape(arg)
                body = quoted[1:-1]
                trailing = len(body) - len(body.rstrip("\\"))
                self.assertEqual(0, trailing % 2)


class EncodeTest(unittest.TestCase):
    def test_join(self):
        self.assertEqual('-O2 "/Ia"', sut.encode(["-O2", '"/Ia"']))

    def test_empty_arguments_dropped(self):
        self.assertEqual("-O2 /c", sut.encode(["-O2", "", "/c"]))
        self.assertEqual("", sut.encode([]))


class DecodeTest(unittest.TestCase):
    def test_regular_commands(self):
        self.assertEqual([], sut.decode(""))
        self.assertEqual(["cl.exe", "/c", "file.c"], sut.decode("cl.exe /c file.c"))
        self.assertEqual(["cl.exe", "/c", "file.c"], sut.decode("cl.exe  /c\tfile.c "))

    def test_quoted_commands(self):
        self.assertEqual(["C:\\Program Files\\cl.exe", "/c"], sut.decode('"C:\\Program Files\\cl.exe" /c'))
        self.assertEqual(["/IC:\\my dir"], sut.decode('/I"C:\\my dir"'))
        self.assertEqual([""], sut.decode('""'))

    def test_backslashes(self):
        self.assertEqual(["a\\b"], sut.decode("a\\b"))
        self.assertEqual(["a\\\\b"], sut.decode("a\\\\b"))
        self.assertEqual(["a\\"], sut.decode('"a\\\\"'))
        self.assertEqual(['a"b'], sut.decode('a\\"b'))
        self.assertEqual(['a\\"b'], sut.decode('a\\\\\\"b'))
        self.assertEqual(["a\\", "b"], sut.decode('"a\\\\" b'))

    def test_trailing_backslashes_round_trip(self):
        for arg in ["C:\\foo\\", "C:\\foo\\\\", "plain", "with space\\", "\\\\server\\share\\", ""]:
            with self.subTest(arg=arg):
                self.assertEqual([arg], sut.decode(sut.escape(arg)))

    def test_command_round_trip(self):
        arguments = ["/IC:\\inc\\", "/DNAME=value", "/external:IC:\\Program Files\\sdk"]
        line = sut.encode(["-O2"] + [sut.escape(arg) for arg in arguments])
        self.assertEqual(["-O2"] + arguments, sut.decode(line))
