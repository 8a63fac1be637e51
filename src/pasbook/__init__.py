"""Imports packaged wallet passes (.pkpass) into a local pass library"""

__version__ = "0.1.0"
