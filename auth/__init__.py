"""auth/ -- Authentication core for Datify.

Password hashing, token issuance/verification, rate limiting, the user
store and the gateway that orchestrates them.

Layer rule: auth/ imports only stdlib + third-party libraries. It does NOT
import from api/ or core/; api/ imports from auth/, not the other way
around. auth/dependencies.py is the one module that touches fastapi.
"""
