"""
Core infrastructure: configuration, logging, metrics, caching,
rate limiting and database connectivity.
"""
