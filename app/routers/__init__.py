"""
app/routers — FastAPI Routers Module
======================================

Purpose:
  Public endpoint definitions for the portfolio site.

Routers:
  - pages: server-rendered public pages, contact form and admin sign-in
  - api: read-only JSON endpoints for portfolio content
"""
