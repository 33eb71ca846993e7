"""
EduMatch Aptitude Service
Aptitude testing core of a student/college matching portal.

Architecture:
- MongoDB: hierarchical document store (collections + sub-collections)
- Services: test assignment, grading, application status reconciliation
- FastAPI: HTTP surface used by the portal UI
"""

__version__ = "1.0.0"
