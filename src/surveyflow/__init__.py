"""
Survey Flow Graph Package

The branching core of the survey platform: questions, the transition rules
persisted on each question, the flow graph assembled from them, and the
engine that walks that graph while a respondent answers.

ARCHITECTURAL GUARANTEE:
------------------------
This package contains ZERO knowledge of:
    - Authentication or role gating
    - Database/ORM access
    - UI rendering

Storage, submission and redemption are reached only through the
protocols in `surveyflow.collaborators`.
"""

__version__ = "0.1.0"
