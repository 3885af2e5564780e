"""Butcher shop point-of-sale engine: scale barcodes, batch matching, cart pricing and settlement."""

__version__ = "1.0.0"
