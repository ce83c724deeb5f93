"""
Adapter layer for the catalog API.

Contains the local disk file store and the MongoDB record store.
"""
