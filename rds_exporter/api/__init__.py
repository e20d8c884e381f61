"""HTTP API blueprints other than /metrics."""
