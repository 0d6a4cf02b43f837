"""
FastAPI RESTful API for the Library book catalogue.

This module provides a REST API for:
- Creating, reading, updating and deleting book records
- Single and bulk book inserts
- Paginated book listing
- Fuzzy search over title, author and genre
"""
