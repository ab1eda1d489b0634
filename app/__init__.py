"""SFDC sync service application package."""
