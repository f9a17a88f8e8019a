"""Domain services for the CFDI calculator."""
