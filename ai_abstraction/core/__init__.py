"""
Core Module

Cross-cutting building blocks shared by every layer:

- **config**: Settings and constants
- **logging**: structlog setup and stage logging
- **exceptions**: Exception hierarchy
- **interfaces**: Protocols for external collaborators
"""
