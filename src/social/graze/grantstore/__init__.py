"""
Grant Store - OAuth 2.0 Credential Lifecycle

This package implements the storage-backed model layer an OAuth 2.0
authorization server's grant-flow engine needs: authorization code issuance
and exchange, access and refresh token issuance, refresh, revocation and
client lookup.

Key Components:
- issuer: The credential issuer, the state machine over codes and tokens
- store: Client registry, authorization code store and token store
- model: SQLAlchemy models for the four credential collections
- views: The camelCase views handed to the grant-flow engine
- errors: The credential error taxonomy
- app: Configuration, metrics and the administrative CLI

Architecture Overview:
1. A grant-flow engine calls the issuer for each protocol step
2. The issuer validates clients, expiry and single use, then calls the stores
3. The stores are the only components touching persistent state

HTTP routing, request parsing and user authentication are the grant-flow
engine's concern and are not part of this package.
"""
