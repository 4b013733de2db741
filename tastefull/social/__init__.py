"""
Social graph.

Responsibilities:
- Answer follow, follower and follow-request queries over a snapshot of rows.
- Move a (follower, target) pair through none, requested and following.
"""
