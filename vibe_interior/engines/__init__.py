"""
Vibe Interior Engines Package

- furniture_selection: catalog-constrained furniture selection and detection matching
"""
