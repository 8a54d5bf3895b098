"""
Database module for the University LMS

Contains seed data and database utilities.
"""
from lms.db.seed_data import seed_all, clear_all, seed_university

__all__ = ["seed_all", "clear_all", "seed_university"]
