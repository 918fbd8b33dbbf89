# Routes package init
"""
FakeSO Backend — API Routes Package
=====================================

What:  HTTP and WebSocket handlers that accept requests and return responses.

Route Inventory:
    - questions.py:      /question/*     add, list, open, vote
    - answers.py:        /answer/addAnswer
    - comments.py:       /comment/addComment
    - tags.py:           /tag/*
    - users.py:          /user/*
    - notifications.py:  /notification/*
    - realtime.py:       WS /ws/events
    - health.py:         GET /health

Design Principle:
    Routes are THIN: extract the request data, call one service, publish
    the matching real-time event, return the result. Errors raised by a
    service bubble up to the global handlers in main.py.
"""
