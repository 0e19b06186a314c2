"""Test suite for the microtemplate package.

This package contains unit and integration tests validating catalog
loading, entry point binding, argument normalization, template
composition, and the command line utilities.
"""
