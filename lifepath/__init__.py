"""
LifePath - Source Package

A personal development tracker: an onboarding quiz, four kinds of
personal records (goals, learnings, dreams, finances) and a dashboard
summarising them.

DESIGN PRINCIPLES:
1. The user is never blocked by a failing backend
2. Failures are visible in the audit trail, never silent
3. Identity is passed explicitly, never looked up from ambient state
4. Money is Decimal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "LifePath Team"
