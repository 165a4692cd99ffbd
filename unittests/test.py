#! /usr/bin/env python
"""Runs unit tests on all nsxml modules"""

import unittest
import logging
import sys

import test_unicode5
import test_xml_namespace
import test_xml_parser
import test_xml_scanner
import test_xml_structures


all_tests = unittest.TestSuite()
all_tests.addTest(test_unicode5.suite())
all_tests.addTest(test_xml_namespace.suite())
all_tests.addTest(test_xml_parser.suite())
all_tests.addTest(test_xml_scanner.suite())
all_tests.addTest(test_xml_structures.suite())


def suite():
    global all_tests
    return all_tests


def load_tests(loader, tests, pattern):
    return suite()

if __name__ == "__main__":
    logging.basicConfig(level=logging.ERROR)
    result = unittest.TextTestRunner(verbosity=0).run(suite())
    sys.exit(not result.wasSuccessful())
