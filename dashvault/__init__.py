"""
dashvault - Dashboard Layout and Credential Core
================================================

Layout migration, encrypted connection credentials and preview query limiting
for a Neo4j / PostgreSQL analytics dashboard.
"""

__version__ = "1.0.0"
