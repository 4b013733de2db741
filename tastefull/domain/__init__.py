"""
Domain records for Tastefull.

Responsibilities:
- Describe users, organisations, memberships, follows and follow requests.
- Describe restaurants, reviews and tags as already fetched from the backend.
- Describe the viewer-selected filter state and per-field review visibility.
"""
