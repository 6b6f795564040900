"""Command line tool for gitops-generator."""
