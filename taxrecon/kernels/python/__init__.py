"""
Integer AMM kernels.

Each kernel mirrors one on-chain computation bit for bit (floor division,
fee in thousandths) and returns a typed result so callers can inspect the
intermediate values, not just the answer.
"""
