"""
Report package: render group statistics as text, Markdown, CSV, JSON or HTML.
"""
