"""Hedera Scenario Player.

End-to-end testing tool for the account, token and consensus services of a
Hedera network.
"""

__version__ = "0.1.0"
