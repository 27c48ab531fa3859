"""medledger - permissioned record-access engine with an attributed audit trail."""

__version__ = "0.1.0"
