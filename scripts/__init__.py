"""Command-line scripts for HavenRec."""
