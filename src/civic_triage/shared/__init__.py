"""
Shared Kernel Module
====================

Shared infrastructure used across the triage and complaints bounded
contexts.

DO NOT add triage or complaint business logic to the shared kernel.
"""
