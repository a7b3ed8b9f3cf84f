"""
Storage strategies for URL records.

- memory: MemoryURLRepository
- file: FileURLRepository (append-only JSON lines)
- database: DatabaseURLRepository (SQLAlchemy, batched soft delete)

Use shortener.repositories.factory.build_repository() to pick one from settings.
"""
