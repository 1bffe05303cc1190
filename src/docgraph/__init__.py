"""docgraph — document ingestion and graph-enriched retrieval chat."""
