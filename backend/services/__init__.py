"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP layer.

Modules:
    - pricing: Distance estimation, surge and fare quotes
    - matching: Captain selection and reservation
    - ride_management: Core ride lifecycle operations
"""
