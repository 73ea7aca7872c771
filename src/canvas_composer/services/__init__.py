"""Stateless algorithms over the document: picking, reparenting, group transforms."""
