# hackhub/__init__.py
"""
Package root for the hackathon participation service.

Registration, payments, project submissions and AI evaluation on top of a
document store that degrades to in-memory storage when the durable backend
is unreachable.

Usage (development):
    python -m uvicorn hackhub.main:app --reload

Install the package in editable mode for a reliable import path during
auto-reload:
    pip install -e .
"""
