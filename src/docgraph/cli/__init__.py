"""docgraph command-line interface."""
