"""Decoding, validation and iteration of values in the D-Bus wire format."""

__version__ = "0.1.0"