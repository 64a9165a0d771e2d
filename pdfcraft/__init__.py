"""Pieces for building PDF files: TrueType parsing and subsetting, image parsing, outlines and transparency."""

__version__ = "0.1.0"