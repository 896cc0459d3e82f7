"""
Cross-cutting HTTP middleware.

Chain (outermost first):
    Request → [RequestContext] → [GZip] → [CORS] → Route Handler
"""
