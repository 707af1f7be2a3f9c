"""Core (UI-agnostic) campaign dashboard logic.

This package contains:
- payload loading (JSON -> campaign records)
- filter normalization
- aggregation of campaign breakdowns (pandas)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
