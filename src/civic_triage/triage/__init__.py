"""
Triage Module
=============

Bounded Context for complaint classification, urgency scoring and routing.

Responsibilities:
- Score hazard keywords and match category keyword tables
- Classify sentiment and category through an external AI service
- Combine the signals into an urgency score
- Route the complaint to exactly one authority
"""
