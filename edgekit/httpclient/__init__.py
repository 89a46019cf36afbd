"""Settings of an HTTP client and server."""