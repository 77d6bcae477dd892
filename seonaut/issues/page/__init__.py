"""Reporters that check a single page for issues."""