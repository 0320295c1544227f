"""
Database population scripts
"""
