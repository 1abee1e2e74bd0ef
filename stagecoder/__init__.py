"""
StageCoder: agent-driven code changes published to a staging branch.
"""

__version__ = "1.0.0"
