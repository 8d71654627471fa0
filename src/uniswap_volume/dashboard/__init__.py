"""Read-only HTTP API over the snapshot artifact."""
