"""
PK Validator: extract, normalize and reformat private keys.

Architecture: Extraction → Normalization/Validation → Correction → Formatting → Round trip
Philosophy:  Only 0x + 64 lowercase hex leaves this package as a valid key.
"""

__version__ = "1.0.0"
