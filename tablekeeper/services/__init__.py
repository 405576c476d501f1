"""Business services backing the Tablekeeper API."""
