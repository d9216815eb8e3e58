from kbase.providers.metadata.sqlite_metadata_store import SQLiteDocumentMetadataStore

__all__ = ["SQLiteDocumentMetadataStore"]
