"""
Secrets proxy caching package.

Provides the in-memory secret cache. Entries live until the process exits
or the cache is cleared explicitly; there is no expiry.
"""
