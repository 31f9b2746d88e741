"""store/ -- HTTP client for the remote record store.

Layer rule: store/ imports only from core/ and third-party libraries.
auth/ and tasks/ import from store/, not the other way around.
"""
