"""Utility modules for ArticleScope."""

from .atomic import append_record, atomic_write_json, create_with_header

__all__ = ["append_record", "atomic_write_json", "create_with_header"]
