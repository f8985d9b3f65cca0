# -*- coding: utf-8 -*-
"""sparqlmeta test suite."""
