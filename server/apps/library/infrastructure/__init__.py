"""Infrastructure layer for library app.

This package contains integrations with external systems:
- Filesystem storage backends (mirror tree, upload staging)
- Metadata helpers (MIME type, node name checks)

Keep infrastructure concerns separate from business logic.
"""
