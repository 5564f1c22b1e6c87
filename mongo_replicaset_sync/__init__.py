"""Reconciles MongoDB replica set membership and tags with the EC2 inventory."""

__version__ = "0.1.0"
