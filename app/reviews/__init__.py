"""
Lesson reviews.

Students rate completed lessons; each review feeds the teacher's average
rating and earns the student reward points.
"""
