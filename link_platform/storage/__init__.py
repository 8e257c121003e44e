"""Storage contract and backends."""
