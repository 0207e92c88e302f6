"""
Tests for the tenant auth service: password hashing, session tokens, tenant
store resolution, the user repository, the auth service and its HTTP API.
"""
