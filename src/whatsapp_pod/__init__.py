"""
Babashka pod exposing a WhatsApp messaging client over stdio.

Submodules:
- protocol: bencode framing, request/response model, errors, dispatcher
- session: login state machine
- client: messaging client interface, events and function table
"""

__version__ = "0.1.0"
