"""
Feed filtering layer.

Responsibilities:
- Resolve the viewer's social scope (everyone, following, followers, just me, organisation).
- Narrow restaurants by category, cuisine, tag and selected reviewers.
- Recompute averages over in-scope reviews and apply rating thresholds.
- Assemble the feed response with masked reviews and walking times.
"""
