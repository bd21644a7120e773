# Middleware package init
"""
OP-Blog API: Middleware Package
===============================

Request path (outermost first):
    CORS → Request ID → Security Headers → Rate Limit → Body Limit → Access Log → route

CORS answers preflights before anything else. The request id is assigned
next so that 429 and 413 bodies, error handlers and the access log all
carry it.
"""
