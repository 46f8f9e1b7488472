"""
Kaleidoscope Command-Line Interface
===================================

- **kparse**: parse Kaleidoscope source and print each top-level unit

The tool is a Click-based CLI application acting as a host of the
front end: it owns the input stream and drives the parser one unit at a
time.
"""

__all__ = ["kparse"]
