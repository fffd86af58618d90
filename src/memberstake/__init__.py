"""memberstake - time-weighted staking rewards for membership tokens."""

__version__ = "0.1.0"
