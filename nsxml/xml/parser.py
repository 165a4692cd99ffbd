#! /usr/bin/env python

import io
import logging

from collections import namedtuple
from contextlib import contextmanager

from . import structures as xml
from .scanner import Scanner


logger = logging.getLogger('nsxml.xml.parser')


class XMLFatalError(xml.XMLError):

    """Raised by a fatal error in the parser."""
    pass


class XMLStructuralError(XMLFatalError):

    """Raised when a tag, PI or declaration is malformed or
    unterminated."""
    pass


class XMLWellFormedError(XMLFatalError):

    """Raised when a well-formedness constraint is violated."""
    pass


class XMLReferenceError(XMLFatalError):

    """Raised when an entity or character reference is malformed."""
    pass


class _StopParsing(Exception):
    pass


#: the largest code point allowed in a character reference
MAX_CHAR = 0x10FFFF


def is_char_data(c):
    """Tests if *c* may appear literally in character data"""
    return c != '<' and c != '&'


StartElementEvent = namedtuple('StartElementEvent',
                               ['ns', 'name', 'attrs', 'empty'])
"""A record of a single call to the start element callback

ns
    The namespace URI of the element (None for no namespace)

name
    The local name of the element

attrs
    The dictionary of attribute values keyed on attribute name

empty
    True if the element was introduced with an empty element tag"""


class ParseResult(object):

    """The outcome of parsing a document

    Instances evaluate to True if the parse was successful.  Even when a
    parse fails the events that were delivered before the failure are
    available in :attr:`events`, they are never retracted."""

    def __init__(self, success, line_num, errors, events):
        #: True if the document was parsed successfully
        self.success = success
        #: the line number reached by the parser
        self.line_num = line_num
        #: the list of error messages recorded while parsing
        self.errors = errors
        #: the list of :class:`StartElementEvent` delivered
        self.events = events

    def __bool__(self):
        return self.success

    def __repr__(self):
        return "ParseResult(%s, %i, %s, %s)" % (
            repr(self.success), self.line_num, repr(self.errors),
            repr(self.events))


class XMLParser(object):

    """An XMLParser object

    recoverable (defaults to False)
        Sets the :attr:`recoverable` option.

    start_element (defaults to None)
        Sets the :attr:`start_element` option.

    XMLParser objects parse documents for the constructs defined by the
    numbered productions in the XML specification.  Only the subset of
    XML without a document type declaration is supported: a document
    containing a DOCTYPE fails to parse.

    The parser reports the start of each element to a callback, the
    callback is called with four arguments::

        start_element(ns, name, attrs, empty)

    The base class does not process namespaces, *ns* is always None and
    *name* is the name used in the tag.  See
    :class:`~nsxml.xml.namespace.XMLNSParser` for a parser that
    expands names.

    The state of a parse (the position in the source, the line number
    and the list of errors) is created afresh by each call to
    :meth:`parse` and may be inspected after it returns.  The parser is
    not reentrant: use separate instances to parse concurrently."""

    PredefinedEntities = {
        'lt': '<',
        'gt': '>',
        'apos': "'",
        'quot': '"',
        'amp': '&'}
    """A mapping from the names of the predefined entities (lt, gt, amp,
    apos, quot) to their replacement characters."""

    def __init__(self, recoverable=False, start_element=None):
        self.recoverable = recoverable
        """Enables error recovery

        By default the first error stops the parser.  When True, most
        errors are recorded in :attr:`errors` and the parser attempts to
        continue.  Mismatched end tags, undeclared namespace prefixes,
        unknown entities and DOCTYPE declarations are always fatal."""
        #: the default start element callback, may be None
        self.start_element = start_element
        #: the :class:`~nsxml.xml.scanner.Scanner` of the current parse
        self.scanner = None
        #: the list of error messages recorded by the last parse
        self.errors = []
        #: the attributes of the XML declaration or None if absent
        self.declaration = None
        self._handler = None
        self._stopped = False

    @property
    def line_num(self):
        """The current line number (1-based)"""
        if self.scanner is None:
            return 1
        return self.scanner.line_num

    def parse(self, src, start_element=None):
        """Parses a document

        src
            A character string containing the document.

        start_element (optional)
            A callback used for this parse only, in place of
            :attr:`start_element`.

        Returns True if the document was parsed successfully or if the
        parse was stopped with :meth:`stop`; False if the parse failed.
        In either case, any errors are available in :attr:`errors`."""
        self.scanner = Scanner(src)
        self.errors = []
        self.declaration = None
        self._stopped = False
        if start_element is None:
            start_element = self.start_element
        self._handler = start_element
        self.reset_scope()
        try:
            return self.parse_document()
        except _StopParsing:
            logger.debug("parse stopped on line %i", self.line_num)
            return True
        except XMLFatalError as err:
            logger.debug("parse failed: %s", str(err))
            self.scanner.discard()
            return False
        finally:
            self._handler = None

    def parse_file(self, path, encoding='utf-8-sig', start_element=None):
        """Parses a document read from a file

        path
            The path of the file to parse.

        encoding (defaults to 'utf-8-sig')
            The encoding used to decode the file.  The default is UTF-8
            with an optional byte order mark.

        The file is read completely before parsing starts and line ends
        are passed to the parser unchanged.  Otherwise identical to
        :meth:`parse`."""
        with io.open(path, 'r', encoding=encoding, newline='') as f:
            src = f.read()
        return self.parse(src, start_element)

    def stop(self):
        """Stops the parser

        Typically called from within the start element callback but it
        may also be called from :meth:`handle_data` or
        :meth:`processing_instruction`.  The remaining input is
        discarded and, once the caller returns, :meth:`parse` returns
        True without parsing anything else."""
        self._stopped = True
        if self.scanner is not None:
            self.scanner.discard()

    def well_formedness_error(self, msg, error_class=XMLWellFormedError,
                              fatal=False):
        """Reports an error

        msg
            The error message.

        error_class
            An optional error class which must be derived from
            :class:`XMLFatalError`.

        fatal (defaults to False)
            If True the error is raised even if the parser is
            recoverable.

        The message is added to :attr:`errors` (prefixed with the
        current line number) and then, unless the parser is recoverable
        and the error is not *fatal*, *error_class* is raised.  When the
        method returns the caller is expected to continue as best it
        can.

        Once the parser has been stopped errors are not reported, the
        parse simply ends."""
        if self._stopped:
            # input discarded by stop
            raise _StopParsing
        msg = "Error at %s: %s" % (self.scanner.get_position_str(), msg)
        self.errors.append(msg)
        logger.info(msg)
        if fatal or not self.recoverable:
            raise error_class(msg)

    def handle_stag(self, ns, name, attrs, empty):
        """Called when a start tag or empty element tag is parsed

        Calls the start element callback (if there is one).  If the
        callback stopped the parser the parse is abandoned."""
        if self._handler is not None:
            self._handler(ns, name, attrs, empty)
        if self._stopped:
            raise _StopParsing

    def handle_data(self, data, cdata=False):
        """Called with character data found in content

        data
            A string of data, references have already been replaced.

        cdata
            True if *data* is the content of a CDATA section.

        The default implementation does nothing."""
        pass

    def processing_instruction(self, target, attrs):
        """Called when a processing instruction is parsed

        The default implementation does nothing."""
        pass

    def reset_scope(self):
        """Called at the start of each parse

        Derived classes that manage scoped information, such as
        namespace declarations, use this method to discard the state
        left by previous parses."""
        pass

    def begin_scope(self):
        """Called before the attributes of a start tag are parsed"""
        pass

    @contextmanager
    def enter_scope(self):
        """Returns a context manager around the rest of an element

        Entered after the attributes of a start tag have been parsed
        and exited when the element, including all of its content, has
        been parsed, or abandoned."""
        yield

    def declare_attribute(self, name, value):
        """Called with each attribute of a start tag

        Returns False if the attribute should be dropped.  The default
        implementation accepts all attributes."""
        return True

    def expand_element_name(self, name):
        """Returns a tuple of (namespace, local name) for *name*

        The default implementation ignores namespaces and returns (None,
        *name*)."""
        return None, name

    def parse_document(self):
        """[1] document

        Returns True if the document was parsed successfully.  A
        document that ends before the root element is considered to
        have been parsed successfully.  In recoverable mode
        content that is not a root element, or that follows the root
        element, is reported and ignored."""
        self.parse_prolog()
        if self.scanner.eof():
            logger.debug("no root element")
            return True
        if self.scanner.peek('<') and not self.scanner.peek('</'):
            result = self.parse_element()
        else:
            self.well_formedness_error("Expected root element",
                                       XMLStructuralError)
            return True
        if result:
            self.parse_misc()
            if not self.scanner.eof():
                self.well_formedness_error(
                    "Unexpected content after root element",
                    XMLStructuralError)
        return result

    # Production [2] is implemented with the function is_char

    def parse_s(self):
        """[3] S

        Parses white space returning it as a string.  If there is no
        white space at the current position then an *empty string* is
        returned."""
        return self.scanner.next_run(xml.is_s)

    def parse_name(self):
        """[5] Name

        Parses an optional name.  The name is returned as a string.  If
        no Name can be parsed then None is returned."""
        if not xml.is_name_start_char(self.scanner.the_char):
            return None
        return self.scanner.next_run(xml.is_name_char)

    def parse_quote(self):
        """Parses an optional quote character

        Returns the quote parsed, one of '"' or "'", or None if there is
        no quote at the current position."""
        for q in '"\'':
            if self.scanner.next(q):
                return q
        return None

    def parse_att_value(self, q):
        """[10] AttValue

        q
            The quote character that opened the value (already parsed).

        The value is returned without the surrounding quotes and with
        any references expanded.  If the closing quote is missing None
        is returned."""
        def is_value_char(c):
            return c != q and c != '<' and c != '&'

        value = []
        while True:
            value.append(self.scanner.next_run(is_value_char))
            if self.scanner.peek('<'):
                self.well_formedness_error(
                    "Character '<' is illegal in attribute value")
                self.scanner.next('<')
                value.append('<')
            elif self.scanner.peek('&'):
                data = self.parse_reference()
                if data:
                    value.append(data)
            else:
                break
        if not self.scanner.next(q):
            self.well_formedness_error("Missing quotes on attribute value",
                                       XMLStructuralError)
            return None
        return ''.join(value)

    def parse_char_data(self):
        """[14] CharData

        Parses a run of character data, passing it to
        :meth:`handle_data`.  The data is also returned.  The literal
        ']]>' is not allowed in character data, in recoverable mode it
        is treated as data."""
        data = []
        while True:
            data.append(self.scanner.next_until(xml.CDATA_END, is_char_data))
            if self.scanner.peek(xml.CDATA_END):
                self.well_formedness_error(
                    "'%s' is not allowed in character data" % xml.CDATA_END)
                self.scanner.next(xml.CDATA_END)
                data.append(xml.CDATA_END)
            else:
                break
        data = ''.join(data)
        if data:
            self.handle_data(data)
        return data

    def parse_comment(self):
        """[15] Comment

        Returns None if there is no comment at the current position,
        True if a comment was parsed and False if an unterminated
        comment was found (in recoverable mode).

        The string '--' is not allowed in a comment, in recoverable mode
        it is reported and the parser continues to the next '-->'."""
        if not self.scanner.next(xml.COMMENT_START):
            return None
        while True:
            self.scanner.next_until('--', xml.is_char)
            if self.scanner.next(xml.COMMENT_END):
                break
            elif self.scanner.peek('--'):
                self.well_formedness_error("'--' is not allowed in comments")
                self.scanner.next('-')
            elif self.scanner.eof():
                self.well_formedness_error("Comment: expected '-->'",
                                           XMLStructuralError)
                return False
            else:
                self.well_formedness_error(
                    "Illegal character %s in comment" %
                    repr(self.scanner.the_char))
                self.scanner.next(self.scanner.the_char)
        logger.debug("<!--Comment--> on line %i", self.line_num)
        return True

    def parse_pi(self):
        """[16] PI: parses a processing instruction.

        The instruction is parsed as a target name followed by an
        optional list of attributes, these are passed to
        :meth:`processing_instruction`.

        Returns None if there is no PI at the current position, True if
        one was parsed and False if a malformed PI was found (in
        recoverable mode).  A PI with the target 'xml' (in any case) is
        a misplaced XML declaration."""
        if not self.scanner.next('<?'):
            return None
        target = self.parse_name()
        if target is None:
            self.well_formedness_error(
                "Processing instruction: expected target name",
                XMLStructuralError)
            return False
        attrs = self.parse_attribute_list()
        self.parse_s()
        if not self.scanner.next('?>'):
            self.well_formedness_error(
                "Processing instruction: expected '?>'", XMLStructuralError)
            return False
        logger.debug("<?%s?> on line %i", target, self.line_num)
        if target.lower() == 'xml':
            self.well_formedness_error("Unexpected XML declaration")
        else:
            self.processing_instruction(target, attrs)
        return True

    def parse_cdsect(self):
        """[18] CDSect

        The content of the section is passed to :meth:`handle_data`
        exactly as it appears in the source.

        Returns None if there is no CDATA section at the current
        position, True if one was parsed and False if an unterminated
        section was found (in recoverable mode)."""
        if not self.scanner.next(xml.CDATA_START):
            return None
        data = self.scanner.next_until(xml.CDATA_END, xml.is_char)
        if not self.scanner.next(xml.CDATA_END):
            if self.scanner.eof():
                msg = "CDATA section: expected '%s'" % xml.CDATA_END
            else:
                msg = "Illegal character %s in CDATA section" % repr(
                    self.scanner.the_char)
            self.well_formedness_error(msg, XMLStructuralError)
            return False
        logger.debug("<![CDATA[]]> on line %i", self.line_num)
        self.handle_data(data, True)
        return True

    def parse_prolog(self):
        """[22] prolog

        Parses the optional XML declaration followed by any comments,
        processing instructions and white space.  Document type
        declarations are not supported, if one is found the parse fails
        (even in recoverable mode)."""
        self.parse_xml_decl()
        self.parse_misc()
        if self.scanner.peek(xml.DOCTYPE_START):
            self.well_formedness_error(
                "Document type declarations are not supported",
                XMLStructuralError, fatal=True)

    def parse_xml_decl(self):
        """[23] XMLDecl

        The declaration is parsed in the same way as a processing
        instruction, the attributes are saved in :attr:`declaration`.
        Returns None if there is no XML declaration at the current
        position."""
        if not self.scanner.peek('<?xml'):
            return None
        mark = self.scanner.mark()
        self.scanner.next('<?xml')
        if not (xml.is_s(self.scanner.the_char) or self.scanner.peek('?>')):
            # a PI with a target like xml-stylesheet
            self.scanner.reset(mark)
            return None
        attrs = self.parse_attribute_list()
        self.parse_s()
        if not self.scanner.next('?>'):
            self.well_formedness_error("XML declaration: expected '?>'",
                                       XMLStructuralError)
            return False
        logger.debug("<?xml?> version %s", attrs.get('version', None))
        self.declaration = attrs
        return True

    def parse_eq(self):
        """[25] Eq

        Parses an equal sign, optionally surrounded by white space.
        Returns False if there is no equal sign, in which case nothing
        is parsed."""
        mark = self.scanner.mark()
        self.parse_s()
        if not self.scanner.next('='):
            self.scanner.reset(mark)
            return False
        self.parse_s()
        return True

    def parse_misc(self):
        """[27] Misc

        This method parses everything that matches the production
        Misc*"""
        while self.parse_comment() or self.parse_pi() or self.parse_s():
            pass

    def parse_element(self):
        """[39] element

        Returns None if there is no start tag at the current position
        (an end tag is not a start tag), otherwise it returns a boolean
        value:

        True
            the element was parsed normally

        False
            the element was not parsed completely, only returned by
            recoverable parsers.

        The start element callback is called once the start tag has
        been parsed and before any content.  An end tag that does not
        match the start tag is always a fatal error."""
        if self.scanner.peek('</') or not self.scanner.next('<'):
            return None
        name = self.parse_name()
        if name is None:
            self.well_formedness_error("Start tag: expected element name",
                                       XMLStructuralError)
            return False
        line_num = self.line_num
        self.begin_scope()
        attrs = self.parse_attribute_list(True)
        with self.enter_scope():
            self.parse_s()
            if self.scanner.next('/>'):
                empty = True
            elif self.scanner.next('>'):
                empty = False
            else:
                self.well_formedness_error(
                    "Start tag: expected '>' or '/>' in <%s>" % name,
                    XMLStructuralError)
                return False
            ns, local_name = self.expand_element_name(name)
            if empty:
                logger.debug("<%s/> on line %i", name, line_num)
            else:
                logger.debug("<%s> on line %i", name, line_num)
            self.handle_stag(ns, local_name, attrs, empty)
            if empty:
                return True
            self.parse_content()
            return self.parse_etag(name)

    def parse_attribute_list(self, declare=False):
        """Parses (S Attribute)*

        declare (defaults to False)
            If True each attribute is passed to
            :meth:`declare_attribute`, this is done for element start
            tags only.

        Returns a dictionary of attribute values keyed on attribute
        name.  Attributes must be separated by white space and an
        attribute name must not appear more than once."""
        attrs = {}
        while True:
            s = self.parse_s()
            name, value = self.parse_attribute(declare)
            if name is None:
                break
            elif value is None:
                continue
            if not s:
                self.well_formedness_error("Missing required whitespace")
            if name in attrs:
                self.well_formedness_error("Duplicate attribute '%s'" % name)
            else:
                attrs[name] = value
        return attrs

    def parse_attribute(self, declare=False):
        """[41] Attribute

        Returns a tuple of (*name*, *value*) where:

        name
            is the name of the attribute or None if there is no
            attribute at the current position.  An empty string is
            returned in recoverable mode for a value without a name.

        value
            the attribute value or None if the attribute was not parsed
            successfully (in recoverable mode) and should be dropped."""
        name = self.parse_name()
        if name is None and not self.recoverable:
            return None, None
        has_eq = self.parse_eq()
        if not has_eq and not self.recoverable:
            self.well_formedness_error("Missing attribute value",
                                       XMLStructuralError)
        q = self.parse_quote()
        if q is None:
            if not self.recoverable:
                self.well_formedness_error(
                    "Missing quotes on attribute value", XMLStructuralError)
            return self.recover_attribute(name, has_eq)
        value = self.parse_att_value(q)
        if name is None:
            self.well_formedness_error("Missing attribute name",
                                       XMLStructuralError)
            return '', None
        if value is None:
            return name, None
        if declare and not self.declare_attribute(name, value):
            return name, None
        return name, value

    def recover_attribute(self, name, has_eq):
        """Recovers from an attribute with no quoted value

        Only used in recoverable mode, *name* is the name parsed (or
        None) and *has_eq* is True if an equal sign was parsed.  Returns
        a tuple suitable for returning from :meth:`parse_attribute`."""
        if name is None:
            return None, None
        if not has_eq or self.scanner.trailing_space:
            if self.scanner.trailing_space:
                # return the white space to the attribute list
                self.scanner.push_back()
            self.well_formedness_error("Missing attribute value",
                                       XMLStructuralError)
        elif self.scanner.peek('&'):
            if self.parse_reference():
                self.well_formedness_error(
                    "Missing quotes on attribute value", XMLStructuralError)
        elif self.scanner.next_run(xml.is_name_char):
            self.well_formedness_error("Missing quotes on attribute value",
                                       XMLStructuralError)
        else:
            self.well_formedness_error("Missing attribute value",
                                       XMLStructuralError)
        return name, None

    def parse_etag(self, name):
        """[42] ETag

        name
            The name of the element being closed.

        Returns True if the end tag was parsed, False if it was missing
        or malformed (in recoverable mode)."""
        if not self.scanner.next('</'):
            self.well_formedness_error("End tag: expected </%s>" % name,
                                       XMLStructuralError)
            return False
        end_name = self.parse_name()
        if end_name is None:
            self.well_formedness_error("End tag: expected element name",
                                       XMLStructuralError)
            return False
        self.parse_s()
        if not self.scanner.next('>'):
            self.well_formedness_error("End tag: expected '>' in </%s" %
                                       end_name, XMLStructuralError)
            return False
        if end_name != name:
            self.well_formedness_error(
                "Mismatched tag: found </%s>, expected </%s>" %
                (end_name, name), fatal=True)
        logger.debug("</%s>", name)
        return True

    def parse_content(self):
        """[43] content

        Parses character data, CDATA sections, comments, processing
        instructions, references and elements until none of these can
        be parsed.  Returns False if there was no content to parse
        because the source has been consumed."""
        if self.scanner.eof():
            return False
        self.parse_char_data()
        while True:
            # alternatives with the longest leading literals first
            if self.parse_cdsect() or self.parse_comment() or \
                    self.parse_pi():
                pass
            elif self.scanner.peek('&'):
                data = self.parse_reference()
                if data:
                    self.handle_data(data)
            elif not self.parse_element():
                break
            self.parse_char_data()
        return True

    def parse_char_ref(self, got_literal=False):
        """[66] CharRef

        got_literal
            If True, assumes that the leading '&#' literal has already
            been parsed.

        The method returns a string containing the character referred
        to.  Characters outside the basic multilingual plane are
        returned as a single character.  In recoverable mode an empty
        string is returned if the reference is malformed."""
        production = "[66] CharRef"
        if not got_literal and not self.scanner.next('&#'):
            self.well_formedness_error("%s: expected '&#'" % production,
                                       XMLReferenceError)
            return ''
        if self.scanner.next('x'):
            qualifier = 'x'
            digits = self.scanner.next_run(xml.is_hex_digit)
            base = 16
        else:
            qualifier = ''
            digits = self.scanner.next_run(xml.is_decimal_digit)
            base = 10
        if not digits:
            self.well_formedness_error(
                "%s: expected digits after &#%s" % (production, qualifier),
                XMLReferenceError)
            return ''
        code = int(digits, base)
        if code > MAX_CHAR or not xml.is_char(chr(code)):
            self.well_formedness_error(
                "Legal Character: &#%s%s; does not match production for "
                "Char" % (qualifier, digits), XMLReferenceError)
            data = ''
        else:
            data = chr(code)
        if not self.scanner.next(';'):
            self.well_formedness_error(
                "%s: expected ';' after &#%s%s" %
                (production, qualifier, digits), XMLReferenceError)
        return data

    def parse_reference(self):
        """[67] Reference

        This method returns the replacement text of the reference or
        None if there is no reference at the current position.  For a
        character reference this will be the character referred to.

        In recoverable mode a malformed reference results in an empty
        string."""
        if not self.scanner.next('&'):
            return None
        if self.scanner.next('#'):
            return self.parse_char_ref(True)
        else:
            return self.parse_entity_ref(True)

    def parse_entity_ref(self, got_literal=False):
        """[68] EntityRef

        got_literal
            If True, assumes that the leading '&' literal has already
            been parsed.

        Only the predefined entities are recognized, a reference to any
        other entity is a fatal error as there is no DTD in which it
        could have been declared."""
        production = "[68] EntityRef"
        if not got_literal and not self.scanner.next('&'):
            self.well_formedness_error("%s: expected '&'" % production,
                                       XMLReferenceError)
            return ''
        name = self.parse_name()
        if name is None:
            self.well_formedness_error("%s: expected entity name" %
                                       production, XMLReferenceError)
            return ''
        data = self.lookup_predefined_entity(name)
        if data is None:
            self.well_formedness_error("Unknown entity '%s'" % name,
                                       XMLReferenceError, fatal=True)
        if not self.scanner.next(';'):
            self.well_formedness_error(
                "%s: expected ';' after &%s" % (production, name),
                XMLReferenceError)
        logger.debug("&%s; on line %i", name, self.line_num)
        return data

    def lookup_predefined_entity(self, name):
        """Looks up pre-defined entities, e.g., "lt"

        Returns None if *name* is not the name of a predefined
        entity."""
        return XMLParser.PredefinedEntities.get(name, None)
