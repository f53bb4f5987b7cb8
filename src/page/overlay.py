# src/page/overlay.py — v1
"""Full-screen placeholder shown while a hard reset runs."""

from __future__ import annotations

from html import escape

_OVERLAY_TEMPLATE = """<div role="alertdialog" aria-busy="true" style="
  position: fixed; inset: 0; z-index: 999999;
  display: flex; flex-direction: column; align-items: center; justify-content: center;
  background: linear-gradient(135deg, #FF6B35 0%, #e85e2f 100%); color: white;
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
  <div style="width: 60px; height: 60px; margin-bottom: 20px; border-radius: 50%;
    border: 4px solid rgba(255,255,255,0.3); border-top: 4px solid white;
    animation: sg-spin 1s linear infinite;"></div>
  <h2 style="margin: 0; font-size: 24px; font-weight: 600;">Updating {app_name}</h2>
  <p style="margin: 10px 0 0 0; opacity: 0.9;">Clearing cache and reloading...</p>
  <style>@keyframes sg-spin {{ to {{ transform: rotate(360deg); }} }}</style>
</div>"""


def render_update_overlay(app_name: str = "the app") -> str:
    """HTML for the blocking 'updating' screen."""
    return _OVERLAY_TEMPLATE.format(app_name=escape(app_name))
