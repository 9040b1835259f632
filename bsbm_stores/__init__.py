"""Triple store drivers for bsbm-harness."""
