"""
Configuration management for the catalog API.

Contains the Pydantic settings class and its cached accessor.
"""
