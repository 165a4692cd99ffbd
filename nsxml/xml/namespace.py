#! /usr/bin/env python

import logging

from contextlib import contextmanager

from .parser import (
    ParseResult,
    StartElementEvent,
    XMLFatalError,
    XMLParser)


logger = logging.getLogger('nsxml.xml.namespace')


#: URI string constant for the special XML namespace
XML_NAMESPACE = "http://www.w3.org/XML/1998/namespace"

#: URI string constant for the special XMLNS namespace
XMLNS_NAMESPACE = "http://www.w3.org/2000/xmlns/"


class XMLNSError(XMLFatalError):

    """Raised when a namespace declaration is illegal or a prefix is
    undeclared."""
    pass


class NSScope(object):

    """A stack of namespace prefix mappings

    There is one frame on the stack for each open element.  The stack
    starts with a single frame that maps the empty prefix to None so
    unqualified names are in no namespace until a default namespace is
    declared.

    The declarations of an element are collected in a working frame
    between calls to :meth:`begin` and :meth:`end`.  :meth:`end` pushes
    the working frame, or a placeholder if nothing was declared, and
    :meth:`leave` pops it again when the element is closed.  Use
    :meth:`entered` to guarantee that each frame is popped exactly
    once."""

    def __init__(self):
        self._stack = [{'': None}]
        self._current = {}

    def depth(self):
        """Returns the number of frames pushed by :meth:`end`"""
        return len(self._stack) - 1

    def begin(self):
        """Starts collecting the declarations of a new element"""
        self._current = {}

    def declare(self, prefix, ns):
        """Declares a prefix in the working frame

        prefix
            The prefix being declared, the empty string declares the
            default namespace.

        ns
            The namespace URI, which must not be empty.

        Raises :class:`XMLNSError` if the declaration is illegal."""
        if not ns:
            raise XMLNSError(
                "Namespace declaration error: empty namespace for prefix "
                "'%s'" % prefix)
        if prefix == 'xmlns' or ns == XMLNS_NAMESPACE:
            raise XMLNSError(
                "Namespace declaration error: the xmlns prefix and "
                "namespace cannot be declared")
        if (prefix == 'xml') != (ns == XML_NAMESPACE):
            raise XMLNSError(
                "Namespace declaration error: the xml prefix can only be "
                "bound to %s" % XML_NAMESPACE)
        if prefix in self._current:
            raise XMLNSError("Duplicate namespace declaration for prefix "
                             "'%s'" % prefix)
        self._current[prefix] = ns

    def end(self):
        """Pushes the working frame onto the stack"""
        if self._current:
            self._stack.append(dict(self._current))
        else:
            self._stack.append(None)
        self._current = {}

    def leave(self):
        """Pops the innermost frame from the stack

        The initial frame is never popped, ValueError is raised if there
        is no frame to leave."""
        if len(self._stack) < 2:
            raise ValueError("NSScope: leave without matching end")
        self._stack.pop()

    @contextmanager
    def entered(self):
        """Context manager that calls :meth:`end` and :meth:`leave`"""
        self.end()
        try:
            yield self
        finally:
            self.leave()

    def resolve(self, prefix):
        """Returns the namespace bound to *prefix*

        The innermost declaration wins.  Raises :class:`XMLNSError` if
        the prefix has not been declared.  The empty prefix always
        resolves, to None if there is no default namespace in force."""
        for frame in reversed(self._stack):
            if frame is not None and prefix in frame:
                return frame[prefix]
        raise XMLNSError("Undeclared namespace prefix '%s'" % prefix)


class XMLNSParser(XMLParser):

    """A special parser for parsing documents that use namespaces

    The start element callback receives the namespace URI and local part
    of each element's name.  Attributes named xmlns and xmlns:*prefix*
    declare namespaces for the element and its descendants, they are
    still passed to the callback with the element's other attributes.
    The names of other attributes are not expanded."""

    def __init__(self, recoverable=False, start_element=None):
        XMLParser.__init__(self, recoverable, start_element)
        #: the :class:`NSScope` of the current parse
        self.scope = NSScope()

    def reset_scope(self):
        self.scope = NSScope()

    def begin_scope(self):
        self.scope.begin()

    def enter_scope(self):
        return self.scope.entered()

    def declare_attribute(self, name, value):
        """Declares a namespace if *name* is xmlns or xmlns:*prefix*

        An illegal declaration is reported and the attribute dropped (in
        recoverable mode)."""
        if name == 'xmlns':
            prefix = ''
        elif name.startswith('xmlns:'):
            prefix = self.expand_qname(name)[1]
            if not prefix:
                self.well_formedness_error(
                    "Namespace declaration error: missing prefix in %s" %
                    name, XMLNSError)
                return False
        else:
            return True
        try:
            self.scope.declare(prefix, value)
        except XMLNSError as err:
            self.well_formedness_error(str(err), XMLNSError)
            return False
        logger.debug("xmlns:%s=%s on line %i", prefix, value,
                     self.line_num)
        return True

    def expand_qname(self, qname):
        """Expands a QName, returning a (namespace, name) tuple.

        qname
            The qualified name, split at the first colon.

        An unprefixed name is in the default namespace in force (which
        may be None).  The prefixes xml and xmlns are bound to
        :data:`XML_NAMESPACE` and :data:`XMLNS_NAMESPACE` respectively,
        any other prefix is looked up in the current scope.  Raises
        :class:`XMLNSError` if the prefix is undeclared."""
        prefix, sep, local = qname.partition(':')
        if not sep:
            return self.scope.resolve(''), qname
        elif prefix == 'xml':
            return XML_NAMESPACE, local
        elif prefix == 'xmlns':
            return XMLNS_NAMESPACE, local
        else:
            return self.scope.resolve(prefix), local

    def expand_element_name(self, name):
        """Expands the name of an element

        An undeclared prefix is a fatal error."""
        try:
            return self.expand_qname(name)
        except XMLNSError as err:
            self.well_formedness_error(str(err), XMLNSError, fatal=True)


def parse(src, recoverable=False, start_element=None):
    """Parses *src* with a new :class:`XMLNSParser`

    src
        A character string containing the document.

    recoverable (defaults to False)
        Whether or not the parser attempts to recover from errors.

    start_element (optional)
        A callback that is called for each element in addition to the
        events recorded in the result.

    Returns a :class:`~nsxml.xml.parser.ParseResult`."""
    events = []

    def record(ns, name, attrs, empty):
        events.append(StartElementEvent(ns, name, attrs, empty))
        if start_element is not None:
            start_element(ns, name, attrs, empty)

    parser = XMLNSParser(recoverable=recoverable)
    success = parser.parse(src, record)
    return ParseResult(success, parser.line_num, list(parser.errors), events)
