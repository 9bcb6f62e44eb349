"""
Auth system - registration, login, phone verification, OAuth and tokens.
"""
