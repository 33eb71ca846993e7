"""
Schemas module - Request/Response schemas and domain records.

All models live in edumatch.schemas.schemas:
- Questions and aptitude tests
- Applications and their embedded test result snapshot
- Test results, pending/dashboard tests, reconciliation outcome
"""
