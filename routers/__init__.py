"""
API routers for the bookstore.

Every JSON endpoint answers with the same envelope:
``{"success": true, "message": ..., "data": ...}``; errors are rendered by
the handlers registered in ``main``.
"""


def ok(message: str, data=None, **extra) -> dict:
    body = {"success": True, "message": message, "data": data}
    body.update(extra)
    return body
