"""
Vendor adapters: retailer-specific rule sets for US grocery receipts.

Each adapter scores how strongly a receipt belongs to its retailer and may
hook into the pipeline before stitching, after stitching, and after item
extraction.  The set is closed; VendorResolver holds the registry.

Usage
-----
from vendor_adapters import VendorResolver
resolution = VendorResolver().resolve(raw_lines)
"""

from vendor_adapters.base_adapter import VendorAdapter
from vendor_adapters.resolver import VendorResolution, VendorResolver

__all__ = ["VendorAdapter", "VendorResolution", "VendorResolver"]
