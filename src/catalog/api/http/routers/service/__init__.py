"""Book catalog routers: HTML pages and the JSON API."""
