"""
Scale barcode decoding for TM-F weighing scale labels.

Layout (18 digits, zero indexed):

    F PPPPPP WWWWW TTTTT C
    0 1....6 7..11 12.16 17

- F: flag digit, ``0`` marks a scale label
- P: product code (PLU), kept as the literal 6 character string
- W: net weight in grams
- T: total price in whole Bolivianos (not cents)
- C: check digit
"""
from decimal import Decimal
from typing import Optional

from .config import settings
from .logging_config import get_logger
from .schemas.scan import ScaleBarcodeReading

logger = get_logger("barcode")

GRAMS_PER_KG = Decimal(1000)

# Segment slices
FLAG = slice(0, 1)
PRODUCT_CODE = slice(1, 7)
WEIGHT_GRAMS = slice(7, 12)
TOTAL_PRICE = slice(12, 17)
CHECK_DIGIT = 17


def is_scale_barcode(barcode: str) -> bool:
    """True when ``barcode`` has the fixed-width scale label shape."""
    if not isinstance(barcode, str):
        return False
    return (
        len(barcode) == settings.scale_barcode_length
        and barcode.isascii()
        and barcode.isdigit()
        and barcode[FLAG] == settings.scale_flag_digit
    )


def scale_check_digit(body: str) -> int:
    """
    GS1 mod-10 check digit over the first 17 digits.

    Weights alternate 3,1,3,... starting from the rightmost digit of ``body``.
    """
    total = 0
    for i, ch in enumerate(reversed(body)):
        total += int(ch) * (3 if i % 2 == 0 else 1)
    return (10 - total % 10) % 10


def parse_scale_barcode(barcode: str, validate_checksum: Optional[bool] = None) -> Optional[ScaleBarcodeReading]:
    """
    Decode a scale label into product code, weight and total price.

    Returns None when the input is not a scale code; callers fall back to the
    standard catalog barcode lookup. Never raises.
    """
    if not is_scale_barcode(barcode):
        return None

    if validate_checksum is None:
        validate_checksum = settings.validate_scale_checksum

    check_digit = int(barcode[CHECK_DIGIT])
    if validate_checksum:
        expected = scale_check_digit(barcode[:CHECK_DIGIT])
        if expected != check_digit:
            logger.warning(f"[SCAN] Check digit mismatch for {barcode}: expected {expected}, got {check_digit}")
            return None

    weight_kg = Decimal(int(barcode[WEIGHT_GRAMS])) / GRAMS_PER_KG
    total_price = Decimal(int(barcode[TOTAL_PRICE]))

    return ScaleBarcodeReading(
        product_code=barcode[PRODUCT_CODE],
        weight_kg=weight_kg,
        total_price=total_price,
        check_digit=check_digit,
        raw_barcode=barcode,
    )


def format_weight(kg: Decimal) -> str:
    """Weight for display: up to 3 decimals, trailing zeros dropped."""
    text = f"{Decimal(kg):.3f}".rstrip("0").rstrip(".")
    return text or "0"
