"""
Infrastructure layer - external service integrations.

- storage: Object storage (S3-compatible) client provider

These wrappers translate between external formats and our domain models.
"""
