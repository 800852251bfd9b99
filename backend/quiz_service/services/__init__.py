"""
External collaborators of the quiz engine.
"""
