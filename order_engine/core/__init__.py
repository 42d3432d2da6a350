"""
Core package for shared configuration and logging utilities.
"""
