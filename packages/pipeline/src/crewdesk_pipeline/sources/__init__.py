"""External data source adapters."""
