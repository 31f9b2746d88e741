"""api/ -- FastAPI application, routes, and HTTP transport models.

Layer rule: api/ is the outermost layer. It imports from auth/, tasks/,
store/, and core/; nothing imports from api/.
"""
