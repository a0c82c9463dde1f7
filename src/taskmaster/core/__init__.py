"""Core contracts: error taxonomy and ports (Protocols)."""
