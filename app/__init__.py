"""Association dashboard backend: polls, votes and activity history."""
