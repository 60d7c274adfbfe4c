"""Rendering collaborator contract."""
