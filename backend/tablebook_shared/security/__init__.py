"""
Security module: JWT authentication, password hashing, rate limiting.
"""
