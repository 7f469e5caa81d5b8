"""
Fixed HTTP response payload.

Every accepted connection receives the same bytes: a bare status line,
a content-length header, a blank line and the body, joined with CRLF.
"""

"""
Copyright 2025 Chris Bunting
File: response.py | Purpose: Fixed hello-world response payload
@author Chris Bunting | @version 1.0.0

CHANGELOG:
2025-09-02 - Chris Bunting: Initial implementation
"""

CRLF = "\r\n"
HELLO_BODY = "hello world"


def create_response(body: str) -> bytes:
    """Build the response bytes for ``body``.

    Args:
        body: Text sent as the response body

    Returns:
        UTF-8 encoded payload. The content-length header counts the
        encoded bytes of the body, not its characters.
    """
    lines = [
        "HTTP/1.1 200",
        f"content-length: {len(body.encode('utf-8'))}",
        "",
        body,
    ]
    return CRLF.join(lines).encode("utf-8")


HELLO_RESPONSE = create_response(HELLO_BODY)
