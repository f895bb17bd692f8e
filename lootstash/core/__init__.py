"""LootStash catalog core: pure reconciliation logic, no DB access."""
__version__ = "0.1.0"
