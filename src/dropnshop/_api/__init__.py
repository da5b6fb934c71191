"""Hardware Control API endpoint modules."""
