"""
Attest - rule-based AI-assistance attribution for Git commit history.
"""

__version__ = "0.3.0"
