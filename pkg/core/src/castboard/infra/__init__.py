"""
Infrastructure layer - database, logging, settings, and technical concerns.

This layer contains infrastructure concerns like database access, the unit of
work, logging, configuration, the reference clock and typed errors.
"""
