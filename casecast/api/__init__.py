"""Thin FastAPI layer over the CaseCast engines."""
