"""
Test suite for the keyhub license backend.
"""
