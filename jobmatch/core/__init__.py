"""
Core business logic for the job matching core.

Submodules:
- matching: Job ranking, site preferences and coach context
- context: Application wiring
"""
