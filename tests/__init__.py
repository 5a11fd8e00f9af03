"""
Mediator Test Suite
===================

Test Organization
-----------------
- tests/unit/   : Fast, isolated tests; every Mediator is built fresh per test

Testing Philosophy
------------------
- No shared registry between tests; Config and log context are reset
  after each test (see conftest.py)
- Follow AAA pattern: Arrange, Act, Assert
"""
