"""
Grant Store Application Layer

Ambient plumbing around the credential issuer.

Key Components:
- config.py: Configuration management using Pydantic settings
- metrics.py: Metrics abstraction the issuer reports operations through
- cli.py: Administrative command line (table creation, client provisioning,
  token revocation)
"""
