"""Domain Layer: models, errors, ports and events.

Has no dependency on the infrastructure layer. Everything here describes
*what* the pipeline moves around, not *how* it is fetched or stored.
"""
