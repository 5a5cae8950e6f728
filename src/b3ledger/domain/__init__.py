"""Domain layer for b3ledger application.

Services live in their own modules (``b3ledger.domain.operation_service``,
``b3ledger.domain.upload``, ...) and are imported from there; this package
stays import-free so the database layer can depend on the entities.
"""
