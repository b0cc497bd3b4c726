"""
Kernel layer.

Deterministic, integer-only arithmetic that the expectation engine and the
test simulator share. `taxrecon/kernels/python/` holds the production kernels.
"""
