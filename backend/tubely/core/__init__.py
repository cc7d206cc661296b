"""
Core infrastructure for the Tubely backend.

- auth: Bearer token extraction and HS256 JWT validation
- database: MongoDB async client (Motor) and video record accessors
- errors: Error taxonomy mapped to HTTP statuses
- storage: Local thumbnail files and S3-compatible video objects
"""
