"""Randomized load driver for a peer-to-peer ledger network."""
