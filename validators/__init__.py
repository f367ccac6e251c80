"""Building-code compliance checks."""
