"""Core domain package for otkview.

Core contains annotation, message storage, and quote resolution logic without
any HTTP or database-specific code, keeping the business logic portable.
"""
