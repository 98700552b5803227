"""
API routers, in registration order.

``author_collections`` comes before ``authors`` so ``/authors/(id1,id2)``
reaches the batch lookup.
"""

from library_api.routers import author_collections, authors, books, root

ROUTERS = [root.router, author_collections.router, authors.router, books.router]
