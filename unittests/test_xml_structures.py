#! /usr/bin/env python

import unittest

import nsxml.xml.structures as structures


def suite():
    loader = unittest.defaultTestLoader
    return unittest.TestSuite((
        loader.loadTestsFromTestCase(XMLCharacterTests),
        loader.loadTestsFromTestCase(XMLValidationTests),
    ))


class XMLCharacterTests(unittest.TestCase):
    # Test IsNameChar

    def test_char(self):
        """[2] Char ::= #x9 | #xA | #xD | [#x20-#xD7FF] | [#xE000-#xFFFD] |
        [#x10000-#x10FFFF]"""
        expected_edges = [0x9, 0xB, 0xD, 0xE, 0x20, 0xD800, 0xE000, 0xFFFE,
                          0x10000, 0x110000]
        self.assertTrue(self.find_edges(structures.is_char, 0x110000) ==
                        expected_edges, "is_char")
        self.assertFalse(structures.is_char(None))

    def test_space(self):
        """[3] S ::= (#x20 | #x9 | #xD | #xA)+ """
        expected_edges = [0x9, 0xB, 0xD, 0xE, 0x20, 0x21]
        self.assertTrue(self.find_edges(structures.is_s, 256) ==
                        expected_edges, "is_s")
        self.assertFalse(structures.is_s(None))

    def test_name_start(self):
        """[4] NameStartChar ::= ":" | [A-Z] | "_" | [a-z] | ... """
        expected_edges = [
            0x3A, 0x3B, 0x41, 0x5B, 0x5F, 0x60, 0x61, 0x7B, 0xC0, 0xD7,
            0xD8, 0xF7, 0xF8, 0x300, 0x370, 0x37E, 0x37F, 0x2000, 0x200C,
            0x200E, 0x2070, 0x2190, 0x2C00, 0x2FF0, 0x3001, 0xD800, 0xF900,
            0xFDD0, 0xFDF0, 0xFFFE, 0x10000, 0xF0000]
        self.assertTrue(
            self.find_edges(structures.is_name_start_char, 0x110000) ==
            expected_edges, "is_name_start_char")

    def test_name_char(self):
        """[4a] NameChar ::= NameStartChar | "-" | "." | [0-9] | #xB7 |
        [#x0300-#x036F] | [#x203F-#x2040]"""
        for c in "-.0123456789" + chr(0xB7) + chr(0x300) + chr(0x2040):
            self.assertTrue(structures.is_name_char(c), repr(c))
            self.assertFalse(structures.is_name_start_char(c), repr(c))
        for c in " <>&;=/'\"":
            self.assertFalse(structures.is_name_char(c), repr(c))

    def test_digits(self):
        for c in "0123456789":
            self.assertTrue(structures.is_decimal_digit(c))
            self.assertTrue(structures.is_hex_digit(c))
        for c in "abcdefABCDEF":
            self.assertFalse(structures.is_decimal_digit(c))
            self.assertTrue(structures.is_hex_digit(c))
        self.assertFalse(structures.is_hex_digit('g'))
        self.assertFalse(structures.is_hex_digit(None))

    def find_edges(self, test_func, max):
        edges = []
        flag = False
        for code in range(max + 1):
            c = chr(code) if code <= 0x10FFFF else None
            if flag != test_func(c):
                flag = not flag
                edges.append(code)
        if flag:
            edges.append(max)
        return edges


class XMLValidationTests(unittest.TestCase):

    def test_name(self):
        self.assertTrue(structures.is_valid_name("Simple"))
        self.assertTrue(structures.is_valid_name(":BadNCName"))
        self.assertTrue(structures.is_valid_name("prefix:BadNCName"))
        self.assertTrue(structures.is_valid_name("_GoodNCName"))
        self.assertFalse(structures.is_valid_name("-BadName"))
        self.assertFalse(structures.is_valid_name(".BadName"))
        self.assertFalse(structures.is_valid_name("0BadName"))
        self.assertTrue(structures.is_valid_name("GoodName-0.12"))
        self.assertFalse(structures.is_valid_name("BadName$"))
        self.assertFalse(structures.is_valid_name("BadName+"))
        self.assertTrue(structures.is_valid_name("Caf" + chr(0xE9)))
        self.assertFalse(structures.is_valid_name(""))

    def test_white_space(self):
        self.assertTrue(structures.is_white_space(" \t\r\n"))
        self.assertTrue(structures.is_white_space(""))
        self.assertFalse(structures.is_white_space(" x "))


if __name__ == "__main__":
    unittest.main()
