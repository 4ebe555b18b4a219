"""
Common utilities for solution-sync.

Modules:
- config: runtime settings (API base, branch, timeout, revalidation window)
- errors: error taxonomy shared by auth and sync
- github: async GitHub REST client for `/user` and single-file contents
- languages: language -> extension table and destination path helpers
"""

__all__ = [
    "config",
    "errors",
    "github",
    "languages",
]
