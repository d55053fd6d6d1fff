"""Branchwise: markdown decision trees for project-planning workflows."""

__version__ = "0.1.0"
