"""
Credential Stores

The three stores behind the credential issuer:

- ClientRegistry: resolves registered clients, verifying secrets when given
- AuthorizationCodeStore: issues, looks up and atomically consumes codes
- TokenStore: issues, looks up and revokes access and refresh tokens

base.py declares the protocols the issuer is written against. sql.py backs
them with SQLAlchemy (PostgreSQL in production), memory.py with plain dicts.
Stores never check expiry; that policy belongs to the issuer.
"""
