"""
Carcass Kernel

Domain records and persistence for half-carcass ("media res") quotations:
- Cut catalog and macro/sub-cut taxonomy
- Per-session pricing state with explicit invariant-enforcing setters
- Cost assignments and total-cost overrides
- Quotation persistence with full line-item replacement
"""

__version__ = "0.1.0"
