"""
Ethereum Sandbox Helpers

Utilities used by the contract sandbox: fetching and caching specific
Solidity compiler versions, compiling sources from a directory, waiting
for transaction receipts and decoding event logs.
"""

__version__ = "1.0.0"
__author__ = "Ethereum Sandbox Team"
