"""
Commerce Kernel - order lifecycle and tax rule primitives.

A pure, stateless decision layer for an e-commerce back office:
- Immutable order, address and money value objects
- Tax jurisdiction, rate and category tables passed in explicitly
- Workflow value types for the order status dimensions
- Typed exceptions and structured JSON logging
"""

__version__ = "0.1.0"
