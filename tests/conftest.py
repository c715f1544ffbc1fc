"""
Shared test setup: keep the import-time app off PostgreSQL.
"""

import os

os.environ.setdefault("USER_STORE_BACKEND", "memory")
os.environ.setdefault("JWT_SECRET", "test-secret-key-that-is-long-enough-for-hs256")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
