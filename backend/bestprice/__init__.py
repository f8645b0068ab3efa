"""
BestPrice Back Office - multi-tenant retail management backend

Author: TM3
Date: 2025-10-17
"""
__version__ = "1.0.0"
