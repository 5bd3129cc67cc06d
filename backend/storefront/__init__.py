"""
Storefront Backend
==================

Customer storefront and back-office API: products, orders, carts, supplier
inventory and reviews, served by FastAPI over an in-memory or SQLAlchemy
storage backend.
"""

__version__ = "1.0.0"
