from kbase.providers.remote.http_file_provider import HttpFileProvider

__all__ = ["HttpFileProvider"]
