"""
Lessons app: the lesson lifecycle.

This app handles:
- Lesson requests (direct and open) and teacher matching
- Teacher interest and counter-offers
- Teacher selection, completion and cancellation

Related apps:
    - meetings: Video room provisioning and session events
    - payments: Payment collection and release on completion
    - points: Rewards on completion, penalties on cancellation
"""
