"""
Utilities: exceptions, retry helpers, shared schemas.
"""
