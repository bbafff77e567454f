"""Flask frontend for py-pages.

This package exposes the same page-serving pipeline as a WSGI
application, for running behind a WSGI server instead of the built-in
TCP server.  It is an **optional** extra; install with::

    pip install py-pages[web]

Every request is turned back into an HTTP request line and answered by
``handler.handle_request_line``, so the rules (GET only, HTTP/1.1 only,
no traversal, 404 page) are identical on both surfaces.
"""
