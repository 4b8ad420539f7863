"""Verigate models package.

  - verification.py — RequestContext, SecurityPolicy, VendorResult, VerificationEvent
  - responses.py    — Starlette response builders for the FastAPI adapter
"""
