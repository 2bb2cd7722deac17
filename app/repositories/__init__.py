"""
Repositories package

Each repository encapsulates database operations for a model:
- titles_repository.py
- cachestatus_repository.py

Usage:
    from repositories.titles_repository import TitlesRepository
    page = TitlesRepository.get_paged(generation, page=1, per_page=24)
"""
