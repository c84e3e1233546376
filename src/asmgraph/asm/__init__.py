"""Assembly listing parsing: directive pass and function body pass."""

from asmgraph.asm.directives import classify, parse_symbol
from asmgraph.asm.models import (
    CallSite,
    Classification,
    Linkage,
    ParsedListing,
    ScanResult,
)
from asmgraph.asm.scanner import decode_listing, parse_listing_text, scan

__all__ = [
    "CallSite",
    "Classification",
    "Linkage",
    "ParsedListing",
    "ScanResult",
    "classify",
    "decode_listing",
    "parse_listing_text",
    "parse_symbol",
    "scan",
]
