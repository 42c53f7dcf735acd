"""
Points app: reward balance and tiers.

Lesson completion, cancellation and reviews adjust a user's points through
PointsService; the tier (bronze/silver/gold/platinum) is recomputed on every
change.
"""
