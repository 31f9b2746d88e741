"""auth/ -- Authentication and identity package for TaskVault.

Layer rule: auth/ imports only from core/, store/, stdlib, and third-party
libraries. It does NOT import from api/ or tasks/.
api/ imports from auth/, not the other way around.
"""
