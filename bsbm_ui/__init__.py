"""Command line front end of bsbm-harness."""
