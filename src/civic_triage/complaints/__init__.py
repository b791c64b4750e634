"""
Complaints Module
=================

Bounded Context for what happens to a complaint after triage.

Responsibilities:
- Enforce legal status transitions
- Run the identity consent workflow for anonymous complaints
"""
