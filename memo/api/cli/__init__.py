"""memo command line interface."""
