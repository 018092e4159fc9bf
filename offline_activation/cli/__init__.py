"""Console entry points for issuing and activating tokens."""
