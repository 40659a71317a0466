"""jofsync - One-way sync of JIRA tickets into OmniFocus."""

__version__ = "0.1.0"
