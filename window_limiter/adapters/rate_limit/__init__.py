"""Window store adapters.

Stores act as the execution engine for the limiter: they run the window
procedures atomically per key. The in-memory store serves tests and single
process deployments; the Redis store shares limits across processes.
"""
