"""Route modules for the HavenRec API."""
