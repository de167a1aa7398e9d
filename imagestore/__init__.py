"""
imagestore - object storage access for stored images.

This package contains the complete application:
- core: Framework-agnostic records (ImageRef)
- infrastructure: Object storage client provider (S3/MinIO/R2)
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
