#! /usr/bin/env python
"""The input cursor used by the parser"""

from .structures import is_s


class Scanner(object):

    """Represents the unconsumed part of a source string

    src
        The source text, a character string.  The text must already be
        decoded; no encoding detection is done.

    A scanner tracks a position in *src*, the current (1-based) line
    number and a flag recording whether or not the most recently
    consumed token ended in white space.

    All methods that consume input fail when the scanner is at the end
    of the source, a match against empty input never succeeds.  The
    line number is advanced by each line end in the consumed text:
    carriage-return line-feed pairs, lone carriage returns and lone line
    feeds each count as one line end, even when a pair is split over
    two consume operations."""

    def __init__(self, src):
        if not isinstance(src, str):
            raise TypeError("Scanner requires a character string")
        #: the string being scanned
        self.src = src
        #: the position of the first unconsumed character
        self.pos = 0
        #: the current line number
        self.line_num = 1
        #: True if the last consumed token ended in S
        self.trailing_space = False
        self._last = None

    @property
    def the_char(self):
        """The current character or None at the end of the source"""
        if self.pos < len(self.src):
            return self.src[self.pos]
        else:
            return None

    def remaining(self):
        """Returns the unconsumed text"""
        return self.src[self.pos:]

    def eof(self):
        """True if all of the source has been consumed (or discarded)"""
        return self.pos >= len(self.src)

    def discard(self):
        """Discards all remaining input

        The line number is only advanced to complete a carriage return
        line feed pair split by the discard."""
        if self.src[self.pos - 1:self.pos] == "\r" and self.the_char == "\n":
            # the line end deferred to this line feed
            self.line_num += 1
        self.pos = len(self.src)
        self._last = None

    def mark(self):
        """Returns an opaque object representing the current state

        The mark can be passed to :meth:`reset` to return the scanner
        to this state."""
        return (self.pos, self.line_num, self.trailing_space)

    def reset(self, mark):
        """Restores a state previously returned by :meth:`mark`"""
        self.pos, self.line_num, self.trailing_space = mark
        self._last = None

    def push_back(self):
        """Undoes the most recent consume operation

        Only one level of push back is supported, the method returns
        False if there is nothing to push back."""
        if self._last is None:
            return False
        self.reset(self._last)
        return True

    def _advance(self, new_pos):
        self._last = self.mark()
        data = self.src[self.pos:new_pos]
        lines = data.count('\n') + data.count('\r') - data.count('\r\n')
        if data.endswith('\r') and self.src[new_pos:new_pos + 1] == '\n':
            # counted when the line feed is consumed
            lines -= 1
        self.line_num += lines
        self.trailing_space = bool(data) and is_s(data[-1])
        self.pos = new_pos
        return data

    def peek(self, literal):
        """True if the unconsumed text starts with *literal*"""
        if self.eof():
            return False
        return self.src.startswith(literal, self.pos)

    def next(self, literal):
        """Consumes *literal*

        Returns True if *literal* was found at the current position and
        consumed, False otherwise (in which case the scanner is
        unchanged)."""
        if not self.peek(literal):
            return False
        self._advance(self.pos + len(literal))
        return True

    def next_run(self, test):
        """Consumes the longest run of characters that match *test*

        test
            A function that takes a single character and returns True if
            the character is part of the run, for example, the test
            method of a :class:`~nsxml.unicode5.CharClass`.

        Returns the consumed string, which may be empty."""
        end = self.pos
        src_len = len(self.src)
        while end < src_len and test(self.src[end]):
            end += 1
        return self._advance(end)

    def next_until(self, literal, test=None):
        """Consumes characters up to (but not including) *literal*

        literal
            The string that ends the run.

        test (optional)
            A function that each consumed character must satisfy, the
            run also stops at the first character that fails *test*.

        If *literal* is not found the run continues to the end of the
        source. Returns the consumed string, which may be empty."""
        if test is None:
            end = self.src.find(literal, self.pos)
            if end < 0:
                end = len(self.src)
            return self._advance(end)
        first = literal[0]
        end = self.pos
        src_len = len(self.src)
        while end < src_len:
            c = self.src[end]
            if c == first and self.src.startswith(literal, end):
                break
            elif not test(c):
                break
            end += 1
        return self._advance(end)

    def get_position_str(self):
        """Returns a string describing the current position"""
        return "line %i" % self.line_num
