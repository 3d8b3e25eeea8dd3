"""
CLI module for adspy
"""
