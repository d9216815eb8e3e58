"""kbase: knowledge-document ingestion and retrieval pipeline."""
