"""Project-specific framework utilities.

Configuration parsing, targets-file loading, operational logging and build
report writing. For the project-agnostic target graph kernel, use `targetkit`.
"""
