"""
Package: config
Description: Delivery settings loaded from PLAUSIBLE_* environment variables.
"""
