"""Business logic for the investment ledger."""
