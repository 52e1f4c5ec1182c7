"""covmerge command line interface."""
