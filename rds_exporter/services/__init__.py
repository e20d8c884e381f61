"""AWS-backed services feeding the storage gauges."""
