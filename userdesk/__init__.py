"""
Userdesk

User directory REST API: list, fetch, create, update and delete user
accounts over a relational store.
"""

__version__ = "1.0.0"
__title__ = "Userdesk"
