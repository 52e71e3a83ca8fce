"""Business logic layer for library app.

This package contains all business logic for the folder/document tree:
- Folder and document create, rename, move and delete
- Mirror path resolution and ancestry checks
- Transaction wrapping of database and mirror phases
- Upload staging, permission checks and integrity reports

All business logic should be implemented here, separate from
models (data layer) and infrastructure (external systems).
"""
