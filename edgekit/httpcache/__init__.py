"""WSGI middleware that caches successful HTTP responses."""