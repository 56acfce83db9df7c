"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Application initialization and default admin creation
- db: Database configuration and connection management
- errors: Error taxonomy (ErrorKind) and the AppError exception
- security: Password hashing and JWT token issuance/verification
"""
