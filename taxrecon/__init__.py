"""
taxrecon: reconcile a fee-on-transfer token's observed behavior with its
declared tax policy.

- `taxrecon.core`: policy, classification, expectations, comparison, diagnosis
- `taxrecon.state`: ledger value types
- `taxrecon.kernels.python`: integer constant-product AMM kernels
- `taxrecon.integration`: ports, configuration, scenario runner
"""

__version__ = "0.1.0"
