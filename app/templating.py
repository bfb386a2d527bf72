"""
app/templating.py — Jinja2 environment shared by public and admin pages
========================================================================
"""

from pathlib import Path

from fastapi.templating import Jinja2Templates

from app.services.catalog import format_period, logo_label, main_image

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
templates.env.globals["logo_label"] = logo_label
templates.env.globals["main_image"] = main_image
templates.env.globals["format_period"] = format_period
