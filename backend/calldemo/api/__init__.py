"""
LiveCall Demo - API Package

REST routes, schemas and transport middleware for the call intake.
"""
