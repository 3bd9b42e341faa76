"""rag-ingestion — rate-limited document ingestion into a vector store."""
