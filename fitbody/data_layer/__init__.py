"""Data layer: entity records, durable storage and error types."""
