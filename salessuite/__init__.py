"""
Sales Power Suite: client tracker and AI sales tooling.
"""
__version__ = "1.0.0"
