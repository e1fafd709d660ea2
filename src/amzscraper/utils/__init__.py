"""
File utilities for the scraping pipeline.
"""

from .io import (
    read_json_file,
    write_json_file,
    safe_write_text_with_backup,
    make_filename_safe,
    ensure_output_directory
)

__all__ = [
    "read_json_file",
    "write_json_file",
    "safe_write_text_with_backup",
    "make_filename_safe",
    "ensure_output_directory"
]
