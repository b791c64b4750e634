"""
Civic Triage
============

Triage core for free-text civic complaints.

Bounded contexts:
- triage: hazard scoring, keyword and AI classification, urgency, routing
- complaints: status lifecycle and identity consent workflow
"""

__version__ = "1.0.0"
