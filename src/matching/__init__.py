# src/matching/__init__.py — v1
