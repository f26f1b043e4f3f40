"""lablink: relays GitLab webhook events to the right person on Slack."""
