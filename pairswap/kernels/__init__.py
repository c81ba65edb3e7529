"""
Kernel layer.

Pure, integer-only arithmetic used by the pool. Validation and error mapping
happen one layer up, in `pairswap/core/`.
"""
