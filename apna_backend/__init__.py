"""Apna Freelancer backend: marketplace listings and admin moderation."""

__version__ = "0.1.0"
