"""Bridgeflow - atomic wrap/swap/settle bridge batches for EVM chains."""

__version__ = "0.1.0"
