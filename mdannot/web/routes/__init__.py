"""HTTP routes of the web application."""
