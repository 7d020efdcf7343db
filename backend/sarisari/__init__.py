"""Sari-Sari Store inventory and storefront backend"""
from .system import SariSariSystem

__all__ = ['SariSariSystem']
