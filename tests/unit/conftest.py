"""
Unit test fixtures. Pure functions only; no DB.
"""
