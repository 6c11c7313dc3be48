"""Database package: ORM models, session management and repository queries."""
