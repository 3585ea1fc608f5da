"""
CEP Customer Registry — Production Package
==========================================
Customer records whose address is resolved from a Brazilian postal code (CEP)
at write time.  Hexagonal (Ports & Adapters) architecture.

Layer map
─────────────────────────────────────────────────────
  config/       All tuneable settings
  domain/       Pure business objects (models, mapping, errors) — no I/O
  ports/        Abstract interfaces (Python Protocols)
  adapters/     Concrete implementations of each Port (ViaCEP, Postgres…)
  services/     Orchestration + error classification; depends only on Ports
  interfaces/   Delivery layer: FastAPI HTTP API, CLI
  tests/        Full test suite: unit / integration / e2e

Swapping any external dependency (lookup service, database):
  1. Write a new adapter in adapters/ implementing the relevant Port
  2. Change the wiring in services/container.py
  3. Done — zero other files touched
"""
__version__ = "1.0.0"
