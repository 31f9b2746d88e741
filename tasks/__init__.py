"""tasks/ -- Task records and the ownership-checked service around them.

Layer rule: tasks/ imports from core/, auth/models, and store/. It does NOT
import from api/.
"""
