"""
Database Models

This package defines the database models for the grant store using SQLAlchemy ORM.
These models represent the persistent state of the OAuth 2.0 credential lifecycle.

Key Models:
- base.py: Base SQLAlchemy model with common type definitions
- oauth.py: Models for clients, authorization codes, access tokens and refresh tokens

The data models follow these relationships:
- OAuthClient: A registered client with its callback URL and allowed grants
- OAuthAuthorizationCode: A single-use code referencing a client and a user
- OAuthAccessToken: A time-bounded token referencing a client and a user
- OAuthRefreshToken: A possibly non-expiring token referencing a client and a user

Credentials reference clients and users by identifier only. There are no
foreign keys: clients are administered separately and users live elsewhere.

The models are used through SQLAlchemy's async interface. Consumption and
revocation are single conditional deletes so that the affected row count is
the only source of truth for "who removed it".
"""
