"""Platform analytics for administrators."""
