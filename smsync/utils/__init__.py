# SMSYNC Utilities Module
# Helper functions for path handling

from smsync.utils.paths import atomic_write, ensure_dir, expand_path

__all__ = [
    "expand_path",
    "ensure_dir",
    "atomic_write",
]
