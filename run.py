"""Exporter entry point."""

from rds_exporter.core.runner import run

if __name__ == "__main__":
    run()
