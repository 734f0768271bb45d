"""Regression tests for snapshot testing.

Uses syrupy for snapshot assertions to detect unexpected changes
in evaluated paths:
- Output fields returned
- Nodes visited
- Trace colours painted on nodes and edges
"""
