"""Uniswap subgraph volume pipeline.

Fetches swaps for one pool per chain from Uniswap subgraphs, rolls them up
into daily, weekly and monthly volume/fee buckets, and writes a JSON snapshot
consumed by the dashboard.
"""

__version__ = "0.1.0"
