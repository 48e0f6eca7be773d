"""
Secrets Manager caching proxy service.
"""
