#!/usr/bin/env python3
"""
Test suite for the fixed response payload
"""
import unittest

from hello_responder.core.response import CRLF, HELLO_BODY, HELLO_RESPONSE, create_response


class ResponseTests(unittest.TestCase):
    def test_hello_response_bytes(self):
        """The precomputed payload matches the wire format exactly"""
        self.assertEqual(
            HELLO_RESPONSE,
            b"HTTP/1.1 200\r\ncontent-length: 11\r\n\r\nhello world",
        )

    def test_line_layout(self):
        """Status line, header, blank line and body separated by CRLF"""
        lines = create_response(HELLO_BODY).decode("utf-8").split(CRLF)
        self.assertEqual(lines, ["HTTP/1.1 200", "content-length: 11", "", "hello world"])

    def test_no_trailing_crlf(self):
        self.assertTrue(HELLO_RESPONSE.endswith(b"hello world"))

    def test_content_length_counts_bytes(self):
        """Non-ASCII bodies are measured in encoded bytes"""
        payload = create_response("héllo")
        self.assertIn(b"content-length: 6\r\n", payload)
        self.assertTrue(payload.endswith("héllo".encode("utf-8")))

    def test_empty_body(self):
        self.assertEqual(create_response(""), b"HTTP/1.1 200\r\ncontent-length: 0\r\n\r\n")


if __name__ == "__main__":
    unittest.main()
