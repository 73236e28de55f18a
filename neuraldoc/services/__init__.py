"""Business logic: extraction routing, ingestion, retrieval and chat."""
