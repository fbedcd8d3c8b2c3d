"""Market store and result feed clients."""
