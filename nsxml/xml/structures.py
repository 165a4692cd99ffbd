#! /usr/bin/env python
"""Character classes and literals from the XML 1.0 specification"""

from ..unicode5 import CharClass


#: the literal that starts a CDATA section
CDATA_START = '<![CDATA['

#: the literal that ends a CDATA section
CDATA_END = ']]>'

#: the literal that starts a comment
COMMENT_START = '<!--'

#: the literal that ends a comment
COMMENT_END = '-->'

#: the literal that introduces a document type declaration
DOCTYPE_START = '<!DOCTYPE'


class XMLError(Exception):

    """Base class for all exceptions raised by this package."""
    pass


char = CharClass(('\t', '\n'), '\r', (' ', chr(0xD7FF)),
                 (chr(0xE000), chr(0xFFFD)),
                 (chr(0x00010000), chr(0x0010FFFF)))


def is_char(c):
    """Tests production [2] Char

    If *c* is None False is returned."""
    return char.test(c)


s = CharClass(' \t\r\n')


def is_s(c):
    """Tests production [3] S

    Although S is defined as a sequence of space characters this
    function tests a single character only.  If *c* is None False is
    returned."""
    return s.test(c)


name_start_char = CharClass(
    ':', ('A', 'Z'), '_', ('a', 'z'),
    (chr(0xC0), chr(0xD6)), (chr(0xD8), chr(0xF6)),
    (chr(0xF8), chr(0x2FF)), (chr(0x370), chr(0x37D)),
    (chr(0x37F), chr(0x1FFF)), (chr(0x200C), chr(0x200D)),
    (chr(0x2070), chr(0x218F)), (chr(0x2C00), chr(0x2FEF)),
    (chr(0x3001), chr(0xD7FF)), (chr(0xF900), chr(0xFDCF)),
    (chr(0xFDF0), chr(0xFFFD)), (chr(0x10000), chr(0xEFFFF)))


def is_name_start_char(c):
    """Tests production [4] NameStartChar"""
    return name_start_char.test(c)


name_char = CharClass(
    name_start_char, '-', '.', ('0', '9'), chr(0xB7),
    (chr(0x0300), chr(0x036F)), (chr(0x203F), chr(0x2040)))


def is_name_char(c):
    """Tests production [4a] NameChar"""
    return name_char.test(c)


decimal_digit = CharClass(('0', '9'))
is_decimal_digit = decimal_digit.test

hex_digit = CharClass(('0', '9'), ('a', 'f'), ('A', 'F'))
is_hex_digit = hex_digit.test


def is_valid_name(name):
    """Tests if *name* is a string matching production [5] Name"""
    if name:
        if not is_name_start_char(name[0]):
            return False
        for c in name[1:]:
            if not is_name_char(c):
                return False
        return True
    else:
        return False


def is_white_space(data):
    """Tests if every character in *data* matches S"""
    for c in data:
        if not is_s(c):
            return False
    return True
