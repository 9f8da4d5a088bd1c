"""auth/ -- Account registration, login and session tokens for Arondight.

Layer rule: auth/ imports only core/, stdlib and third-party libraries.
It does NOT import from api/.
api/ imports from auth/, not the other way around.
"""
