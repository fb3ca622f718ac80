"""
Invariant-preserving mutations and queries shared by the HTTP routes and seed tooling.
"""
