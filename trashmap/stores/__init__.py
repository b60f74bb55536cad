"""Report store backends."""
