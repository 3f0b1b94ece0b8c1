"""Accessh: an interactive directory of service locations, served locally or over SSH."""

__version__ = "0.1.0"
