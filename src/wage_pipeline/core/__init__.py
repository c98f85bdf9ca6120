"""
Core models, errors and configuration shared by every pipeline component.
"""
