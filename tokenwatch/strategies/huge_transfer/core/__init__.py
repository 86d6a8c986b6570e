"""
Core components of the Huge Transfer Strategy.
"""
