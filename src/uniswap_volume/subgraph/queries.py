"""GraphQL documents for the Uniswap v4 subgraph."""

POOL_DETAILS_QUERY = """
query PoolDetails($poolId: String!) {
  pool(id: $poolId) {
    id
    token0 {
      id
      symbol
      decimals
    }
    token1 {
      id
      symbol
      decimals
    }
    feeTier
    txCount
    totalValueLockedUSD
  }
}
"""

# Ordering must be requested explicitly; skip/first pagination is only stable
# over a deterministic sort.
POOL_SWAPS_QUERY = """
query PoolSwaps($poolId: String!, $timestamp: Int!, $skip: Int!, $first: Int!) {
  swaps(
    first: $first
    skip: $skip
    orderBy: timestamp
    orderDirection: asc
    where: {
      pool: $poolId
      timestamp_gte: $timestamp
    }
  ) {
    id
    timestamp
    amount0
    amount1
    amountUSD
    pool {
      id
      feeTier
      token0 {
        decimals
      }
      token1 {
        decimals
      }
    }
  }
}
"""
