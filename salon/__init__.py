"""
Salon booking backend - authentication and session lifecycle.
"""
