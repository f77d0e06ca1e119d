"""Audit engine — route input, look up vulnerabilities, report."""
