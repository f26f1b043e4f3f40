"""Integration adapters for GitLab and Slack that satisfy the core ports."""
