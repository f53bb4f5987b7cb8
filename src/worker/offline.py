# src/worker/offline.py — v1
"""Synthesized fallback responses for when network and cache both fail."""

from __future__ import annotations

from staleguard.core.models import FetchRequest, ResponseSnapshot

OFFLINE_STATUS = 503

OFFLINE_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>Offline</title>
  <style>
    body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
           display: flex; align-items: center; justify-content: center;
           min-height: 100vh; margin: 0; background: #f9fafb; color: #111827; }
    main { text-align: center; max-width: 28rem; padding: 2rem; }
    button { margin-top: 1rem; padding: 0.6rem 1.4rem; border: 0; border-radius: 0.5rem;
             background: #FF6B35; color: #fff; font-size: 1rem; cursor: pointer; }
  </style>
</head>
<body>
  <main>
    <h1>You are offline</h1>
    <p>This page could not be loaded. Check your connection and try again.</p>
    <button type="button" onclick="window.location.reload()">Retry</button>
  </main>
</body>
</html>
"""


def offline_text_response(request: FetchRequest) -> ResponseSnapshot:
    """Minimal plain-text 503 for resource requests."""
    return ResponseSnapshot(
        status=OFFLINE_STATUS,
        status_text="Service Unavailable",
        headers={"Content-Type": "text/plain; charset=utf-8"},
        body=b"Offline",
        type="basic",
        url=request.url,
    )


def offline_page_response(request: FetchRequest) -> ResponseSnapshot:
    """Self-contained offline HTML page with a retry control."""
    return ResponseSnapshot(
        status=OFFLINE_STATUS,
        status_text="Service Unavailable",
        headers={"Content-Type": "text/html; charset=utf-8"},
        body=OFFLINE_PAGE.encode("utf-8"),
        type="basic",
        url=request.url,
    )


def offline_fallback(request: FetchRequest) -> ResponseSnapshot:
    """HTML for navigations, plain text for everything else."""
    if request.is_navigation:
        return offline_page_response(request)
    return offline_text_response(request)
