"""
Development Tools Bridge - discovers, ranks and supervises interchangeable
language, build and debug tools, and guides users through installing the
ones that are missing.
"""

__version__ = "1.0.0"
