"""
PetWell staff directory backend.

Provides:
- Employee and user registration with bcrypt-hashed credentials
- JWT bearer token issuance and validation
- Token revocation at logout
- Role-based access control (roles map to permission strings)
"""

__version__ = "0.1.0"
