"""Local control daemon for Bluetooth earbuds."""

__version__ = "0.1.0"
