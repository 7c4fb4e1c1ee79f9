"""
Release intelligence: draft quality scoring, risk classification, coverage
analysis, test prioritization, release confidence and PR gating.
"""
