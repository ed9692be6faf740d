"""
Building blocks the REST API and CLI share.

config          settings, structured logging, status constants
infrastructure  engine and sessions, request correlation ids
security        JWT bearer tokens, bcrypt, slowapi limits
utils           HTTP exceptions, retry with backoff, pydantic schemas
"""
