"""
Domain layer - entities, actors, and collaborator interfaces.

This layer contains the persistent records of the schedule board and the
interfaces the usecases depend on, independent of any delivery mechanism.
"""
