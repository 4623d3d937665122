#!/usr/bin/env python3
"""
Dev server: serve dictate_test.html and proxy /api/drafts/* to the backend.
Avoids CORS when the page is opened from file:// (origin null).

Usage:
  1. Run the backend at http://localhost:8000 (WebSocket /ws/dictate + /api/drafts).
  2. In this folder: python server.py
  3. Open http://localhost:8080/dictate_test.html

Requests to http://localhost:8080/api/drafts/<id> are forwarded to http://localhost:8000/api/drafts/<id>.
"""
import http.server
import json
import urllib.error
import urllib.request

BACKEND = "http://localhost:8000"
PORT = 8080
PAGE = "dictate_test.html"


class ProxyHandler(http.server.BaseHTTPRequestHandler):
    def do_OPTIONS(self):
        self.send_response(204)
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Methods", "GET, DELETE, OPTIONS")
        self.send_header("Access-Control-Allow-Headers", "Content-Type")
        self.end_headers()

    def _proxy(self, method):
        req = urllib.request.Request(BACKEND + self.path, method=method)
        try:
            with urllib.request.urlopen(req, timeout=30) as r:
                status, body = r.status, r.read()
        except urllib.error.HTTPError as e:
            status, body = e.code, e.read()
        except OSError as e:
            status, body = 502, json.dumps({"error": str(e)}).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.end_headers()
        self.wfile.write(body)

    def do_DELETE(self):
        if self.path.startswith("/api/drafts/"):
            self._proxy("DELETE")
        else:
            self.send_response(404)
            self.end_headers()

    def do_GET(self):
        if self.path.startswith("/api/drafts/"):
            self._proxy("GET")
            return
        path = self.path.split("?")[0].lstrip("/") or PAGE
        if path != PAGE:
            self.send_response(404)
            self.end_headers()
            return
        try:
            with open(path, "rb") as f:
                self.send_response(200)
                self.send_header("Content-Type", "text/html; charset=utf-8")
                self.end_headers()
                self.wfile.write(f.read())
        except FileNotFoundError:
            self.send_response(404)
            self.end_headers()


if __name__ == "__main__":
    print(f"Serving at http://localhost:{PORT}/{PAGE}")
    print(f"API /api/drafts proxied to {BACKEND}")
    http.server.HTTPServer(("", PORT), ProxyHandler).serve_forever()
