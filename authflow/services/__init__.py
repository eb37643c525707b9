"""
Business Logic Services Package.

Error classification, redirect decisions, submit handling and the HTTP
transport.  Services receive their collaborators and a
``StructuredLogger`` through ``__init__``; ``authflow.container`` wires
them together.
"""
