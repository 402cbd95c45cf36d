"""Wiowa games backend: authentication, memory match and word-guess APIs."""
