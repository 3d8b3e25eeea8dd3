"""
adspy - Competitive Ad Gap Analysis

Pits one subject brand against five competitors: retrieves each brand's recent
ad creatives, classifies them across eleven marketing dimensions, and reports
the patterns the market agrees on that the subject is missing.
"""

__version__ = "0.1.0"
__author__ = "adspy Team"
