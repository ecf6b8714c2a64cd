# Adapters for the outside world: export files and the cover image service

from .catalog_loader import ExportReadError, read_table
from .cover_client import CoverClient, cover_url, init_cover_cache

__all__ = ["ExportReadError", "read_table", "CoverClient", "cover_url", "init_cover_cache"]
