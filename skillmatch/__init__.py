"""
SkillMatch - complementary-skill matchmaking for a student social platform.

The matcher scores a subject user against a pool of candidates using the
skills each side can teach and wants to learn, plus shared-interest and
same-department bonuses, and returns the candidates ranked best-first.
"""

__version__ = "0.1.0"
