"""auth/ -- Credentials, bearer tokens and the request identity gate for Quill.

Layer rule: auth/ imports only core/ + stdlib + third-party libraries.
It does NOT import from api/ or posts/.
posts/ and api/ import from auth/, not the other way around.
"""
