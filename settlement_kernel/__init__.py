"""
Settlement Kernel

Pure foundations for the load payment settlement workflow:
- Immutable workflow value objects with total merge semantics
- Decimal-only money helpers with explicit rounding
- Injectable clock (no hidden "today")
- Typed exception hierarchy
- Structured JSON logging
"""

__version__ = "0.1.0"
