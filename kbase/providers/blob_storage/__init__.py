from kbase.providers.blob_storage.local_file_storage import LocalFileStorageProvider

__all__ = ["LocalFileStorageProvider"]
