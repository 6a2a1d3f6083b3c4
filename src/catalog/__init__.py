"""Book catalog web application.

Server-rendered CRUD over a catalog of books with session authentication,
role-based write access and cover image uploads.
"""

__version__ = "0.1.0"
