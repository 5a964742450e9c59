"""State/store layer.

This package owns the client-side snapshots of products, suppliers and
the user profile, their durable persistence, and the session-gated
loaders that fill them once per authenticated session.
"""
