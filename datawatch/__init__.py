"""
datawatch: read-only audit of a CDC pipeline's view of a relational source schema.
"""

__version__ = '0.1.0'
