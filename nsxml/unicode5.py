#! /usr/bin/env python
"""Character classes for the lexical rules of XML"""

import bisect


class CharClass(object):

    """Represents a class of unicode characters.

    A class of characters is represented internally by a sorted list of
    inclusive code point ranges.  This is efficient because most of the
    character classes defined by XML are defined in blocks of
    characters.

    For the constructor, multiple arguments can be provided.

    String arguments add all characters in the string to the class.  For
    example, CharClass('abcxyz') creates a class comprising two ranges:
    a-c and x-z.

    Tuple/List arguments can be used to pass pairs of characters that
    define a range.  For example, CharClass(('a','z')) creates a class
    comprising the letters a-z.

    Instances of CharClass can also be used in the constructor to add an
    existing class.

    Instances support Python's repr function::

        >>> c = CharClass('abcxyz')
        >>> print(repr(c))
        CharClass(('a', 'c'), ('x', 'z'))"""

    def __init__(self, *args):
        #: list of [first, last] code point pairs, sorted and disjoint
        self.ranges = []
        self._clear_cache()
        for arg in args:
            if isinstance(arg, str):
                # Each character in the string is put in the class
                for c in arg:
                    self.add_char(c)
            elif isinstance(arg, (tuple, list)):
                self.add_range(arg[0], arg[1])
            elif isinstance(arg, CharClass):
                self.add_class(arg)
            else:
                raise ValueError(
                    "CharClass: expected str, range or CharClass, found %s" %
                    repr(arg))

    def __repr__(self):
        result = []
        for a, z in self.ranges:
            if a == z:
                result.append(repr(chr(a)))
            else:
                result.append("(%s, %s)" % (repr(chr(a)), repr(chr(z))))
        return "CharClass(%s)" % ', '.join(result)

    def __eq__(self, other):
        """Compares two character classes for equality."""
        return isinstance(other, CharClass) and self.ranges == other.ranges

    def __ne__(self, other):
        return not self == other

    def add_range(self, a, z):
        """Adds a range of characters from a to z to the class

        The order of the end points is not important."""
        a = ord(a)
        z = ord(z)
        if z < a:
            a, z = z, a
        self._add_codes(a, z)

    def add_char(self, c):
        """Adds a single character to the character class"""
        c = ord(c)
        self._add_codes(c, c)

    def add_class(self, c):
        """Adds all the characters in c to the character class

        This is effectively a union operation."""
        for a, z in c.ranges:
            self._add_codes(a, z)

    def _add_codes(self, a, z):
        # first range that ends at or after a - 1, i.e., that touches or
        # follows the new range
        ends = [r[1] for r in self.ranges]
        i = bisect.bisect_left(ends, a - 1)
        j = i
        while j < len(self.ranges) and self.ranges[j][0] <= z + 1:
            j += 1
        if i < j:
            # merge ranges i..j-1 into the new range
            a = min(a, self.ranges[i][0])
            z = max(z, self.ranges[j - 1][1])
        self.ranges[i:j] = [[a, z]]
        self._clear_cache()

    def _clear_cache(self):
        self._block_cache = {}

    def test(self, c):
        """Test a unicode character.

        Returns True if the character is in the class.

        If c is None, False is returned.

        Results are cached in blocks of 256 characters.  The parser
        tests every character of every name against the (complex)
        classes of name characters so most tests are answered from the
        cache."""
        if c is None or not self.ranges:
            return False
        cv = ord(c)
        block_num = cv >> 8
        block = self._block_cache.get(block_num, None)
        if block is None:
            block = self._make_block(block_num)
            self._block_cache[block_num] = block
        return block[cv & 0xFF] != 0

    def _make_block(self, block_num):
        block = bytearray(256)
        base = block_num << 8
        last = base + 255
        i = bisect.bisect_left([r[1] for r in self.ranges], base)
        while i < len(self.ranges):
            a, z = self.ranges[i]
            if a > last:
                break
            for code in range(max(a, base), min(z, last) + 1):
                block[code - base] = 1
            i += 1
        return block
