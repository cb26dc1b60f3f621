"""Backend for a self-hosted, filesystem-backed wiki.

This package keeps FastAPI route handlers thin:
- session tokens, cookies and the role gate
- path normalization and safe joins inside the wiki root
- document/category relocation (rename, move, or both) with revision
  history and comment threads kept path-aligned

Security note:
Session tokens are capability tokens (256 random bits). Anyone with the token
acts as its user, so never log them or expose filesystem paths in responses.
"""
