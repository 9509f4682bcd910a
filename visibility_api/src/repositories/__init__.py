"""
Repository layer for data access.

Repositories encapsulate SQLAlchemy queries for each domain area and operate on
a caller-provided AsyncSession. Transaction boundaries (commit) are
driven by the caller through the helpers on BaseRepository.
"""
