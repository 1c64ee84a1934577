"""
tierguard — Tiered Zone-Based Authorization for AI Coding Agents

A local authorization layer that sits between an AI coding agent and the
workstation it operates on:

- core/access/   : Zone classification, nuclear guard, tier map, authorization facade
- core/crypto/   : Passphrase hashing, HMAC tokens, TTY-gated prompt
- core/trust/    : Bypass authenticator and its on-disk state
- core/resources/: Authentication backoff and operation-rate cap
- core/audit/    : Chain-hashed audit log, checksum manifest
- cli            : Operator command line (python -m tierguard)

Version: 1.2.0
"""

__version__ = "1.2.0"
