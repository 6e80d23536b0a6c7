"""auth/ -- Credential hashing, token signing, and the user directory.

Layer rule: auth/ imports stdlib, third-party libraries, and core/ only.
It does NOT import from api/ or accounts/; those layers import from auth/.
"""
