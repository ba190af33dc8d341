"""Investment ledger and portfolio analytics service."""
