"""Click commands for srcarchive."""
