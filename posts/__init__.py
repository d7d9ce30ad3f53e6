"""posts/ -- Blog posts: persistence, CRUD service and the ownership guard.

Layer rule: posts/ may import from core/ and auth/. It does NOT import from
api/.
"""
