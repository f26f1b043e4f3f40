"""Core domain package for lablink.

Core contains identity correlation, event classification, and notification
decisions without any GitLab, Slack, or HTTP-specific code, keeping the
business logic portable.
"""
