"""
Ascent Test Suite
=================

Test Organization
-----------------
- tests/unit/          : Pure logic tests (no database)
- tests/unit/domain/   : Rank scale and domain level value objects
- tests/integration/   : Services against in-memory SQLite (aiosqlite)

Testing Philosophy
------------------
- Unit tests: fast, isolated, cover the progression rules
- Integration tests: cover transactions, locking and ledger writes
- Use pytest markers to categorize and selectively run tests
- Follow AAA pattern: Arrange, Act, Assert
"""
