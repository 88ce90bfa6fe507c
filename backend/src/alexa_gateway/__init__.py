"""Alexa Smart Home v3 gateway.

Validates inbound Smart Home directives and forwards them to a single
configured backend, translating backend failures into Smart Home error
responses.
"""

__version__ = "0.1.0"
