"""
Core modules for styleprompt.

This package contains the core business logic for:
- Configuration management
- Image intake and credential persistence
- Instruction building and the Gemini prompt generation client
- Batched, cancellable generation runs
"""
