"""
FastAPI RESTful API for a library of authors and their books.

This package provides:
- Paged, sorted, filtered and shaped author listings
- Author and book CRUD with upserts and JSON Patch
- Content negotiation with HATEOAS links
- ETag caching, optimistic concurrency and rate limiting
"""
