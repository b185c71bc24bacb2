"""
Core pipeline: models, normalization, merging, validation, diffing and lifecycle.
"""
