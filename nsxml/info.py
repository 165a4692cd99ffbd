#! /usr/bin/env python
"""The module creates some basic constants to describe the nsxml package."""

title_name = "nsxml"
name = "nsxml"
copyright = "\xA92026, the nsxml authors"

major_version = "0.1"
build_date = "20261019"
version = "%s.%s" % (major_version, build_date)

title = "nsxml: a recursive-descent parser for namespaced XML 1.0"

home = "https://pypi.org/project/nsxml/"
